"""Печатает access-токен для пользователя: python scripts/make_token.py <user_id> [user|admin]"""
import sys
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parent.parent))

from onboard.core.security import ROLE_USER, create_access_token

user_id = int(sys.argv[1]) if len(sys.argv) > 1 else 1
role = sys.argv[2] if len(sys.argv) > 2 else ROLE_USER
print(create_access_token(user_id, role))
