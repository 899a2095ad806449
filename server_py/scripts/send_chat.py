import json
import sys
import urllib.request

# python scripts/send_chat.py <access_token> "text"
url = "http://127.0.0.1:4001/api/v1/chat/messages"
token = sys.argv[1]
text = sys.argv[2] if len(sys.argv) > 2 else "Hello from script"
payload = json.dumps({"message": text}).encode("utf-8")
req = urllib.request.Request(
    url,
    data=payload,
    headers={"Content-Type": "application/json", "Authorization": f"Bearer {token}"},
    method="POST",
)
with urllib.request.urlopen(req) as resp:
    print(resp.status)
    print(resp.read().decode("utf-8"))
