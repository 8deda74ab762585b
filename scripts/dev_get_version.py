# Ask a locally running gitver-server for the version of its configured repository
import os
import sys

import httpx

params = {}
if len(sys.argv) > 1:
    params["path"] = sys.argv[1]
headers = {}
token = os.getenv("GITVER_AUTH_TOKEN")
if token:
    headers["Authorization"] = f"Bearer {token}"
url = os.getenv("GITVER_URL", "http://127.0.0.1:8787") + "/version"

print("GET", url, "params:", params)
r = httpx.get(url, params=params, headers=headers, timeout=30)
print(r.status_code, r.text)
