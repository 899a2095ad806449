import asyncio
import sys

import websockets

# python scripts/ws_user_listener.py <access_token>
TOKEN = sys.argv[1] if len(sys.argv) > 1 else ""


async def main() -> None:
    uri = f"ws://127.0.0.1:4001/ws/chat?token={TOKEN}"
    async with websockets.connect(uri) as websocket:
        print("Подключено к /ws/chat, ожидаем одно сообщение...")
        try:
            payload = await asyncio.wait_for(websocket.recv(), timeout=60)
        except asyncio.TimeoutError:
            print("Таймаут ожидания сообщения")
            return
        print(f"Получено: {payload}")


if __name__ == "__main__":
    asyncio.run(main())
