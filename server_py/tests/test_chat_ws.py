import asyncio
from typing import List

from onboard.core.security import ROLE_ADMIN, ROLE_USER, Identity
from onboard.websockets.chat_ws import ChatConnectionManager


class FakeSocket:
    def __init__(self, broken: bool = False) -> None:
        self.broken = broken
        self.sent: List[dict] = []

    async def send_json(self, message: dict) -> None:
        if self.broken:
            raise RuntimeError("socket closed")
        self.sent.append(message)


async def test_message_reaches_owner_and_admins_only() -> None:
    manager = ChatConnectionManager()
    owner, stranger, admin = FakeSocket(), FakeSocket(), FakeSocket()
    await manager.register(Identity(user_id=1, role=ROLE_USER), owner)
    await manager.register(Identity(user_id=2, role=ROLE_USER), stranger)
    await manager.register(Identity(user_id=99, role=ROLE_ADMIN), admin)

    await manager.push_message(1, {"message": "hello"})

    assert owner.sent == [{"message": "hello"}]
    assert admin.sent == [{"message": "hello"}]
    assert stranger.sent == []


async def test_dead_socket_is_dropped() -> None:
    manager = ChatConnectionManager()
    dead, alive = FakeSocket(broken=True), FakeSocket()
    await manager.register(Identity(user_id=1, role=ROLE_USER), dead)
    await manager.register(Identity(user_id=1, role=ROLE_USER), alive)

    await manager.push_message(1, {"n": 1})
    dead.broken = False
    await manager.push_message(1, {"n": 2})

    assert alive.sent == [{"n": 1}, {"n": 2}]
    assert dead.sent == []


async def test_unregister_is_idempotent() -> None:
    manager = ChatConnectionManager()
    socket = FakeSocket()
    await manager.register(Identity(user_id=1, role=ROLE_USER), socket)

    await manager.unregister(socket)
    await manager.unregister(socket)
    await manager.push_message(1, {"n": 1})

    assert socket.sent == []


class StalledSocket(FakeSocket):
    async def send_json(self, message: dict) -> None:
        await asyncio.sleep(60)


async def test_stalled_socket_times_out_and_is_dropped() -> None:
    manager = ChatConnectionManager(send_timeout=0.05)
    stalled, alive = StalledSocket(), FakeSocket()
    await manager.register(Identity(user_id=1, role=ROLE_USER), stalled)
    await manager.register(Identity(user_id=99, role=ROLE_ADMIN), alive)

    await asyncio.wait_for(manager.push_message(1, {"n": 1}), timeout=5)

    assert alive.sent == [{"n": 1}]
    assert stalled not in await manager._snapshot(1)
