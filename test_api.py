"""
Smoke test script for the LabelLens API against a running server.
Walks the signup -> scan -> history flow.
"""
import requests
from uuid import uuid4

BASE_URL = "http://localhost:8000/api"

suffix = uuid4().hex[:6]
email = f"smoke-{suffix}@example.com"
password = "smoke-test-pass"

print("=" * 60)
print("LabelLens API Smoke Test")
print("=" * 60)

# Step 1: Sign up and verify the email with the returned token
print("\n1. Signing up...")
response = requests.post(
    f"{BASE_URL}/users/signup",
    json={"username": f"smoke-{suffix}", "email": email, "password": password}
)
print(f"   Status: {response.status_code}")
verify_token = response.json()["token"]

response = requests.post(
    f"{BASE_URL}/users/verify-email",
    headers={"Authorization": f"Bearer {verify_token}"}
)
print(f"   Verify status: {response.status_code}")

# Step 2: Log in
print("\n2. Logging in...")
response = requests.post(f"{BASE_URL}/users/login", json={"email": email, "password": password})
print(f"   Status: {response.status_code}")
headers = {"Authorization": f"Bearer {response.json()['accessToken']}"}

# Step 3: Set a health profile
print("\n3. Updating health profile...")
response = requests.put(
    f"{BASE_URL}/users/update-user",
    json={"healthCondition": ["diabetes"], "allergies": ["peanuts"]},
    headers=headers
)
print(f"   Status: {response.status_code}")

# Step 4: Empty barcode must be rejected
print("\n4. Submitting an empty barcode...")
response = requests.post(f"{BASE_URL}/ocr/barcode-lookup", json={"barcode": ""}, headers=headers)
print(f"   Status: {response.status_code} (should be 400)")

# Step 5: Look up a real barcode
print("\n5. Looking up barcode 8901063142664...")
response = requests.post(
    f"{BASE_URL}/ocr/barcode-lookup",
    json={"barcode": "8901063142664"},
    headers=headers
)
body = response.json()
print(f"   Status: {response.status_code}")
if body["success"]:
    data = body["data"]
    print(f"   Product: {data['productName']} ({data['brand']})")
    print(f"   Verdict: {data['verdict']} - risk {data['riskScore']}")
    print(f"   Alternatives: {[a['name'] for a in data['alternatives']]}")
else:
    print(f"   {body['message']}")

# Step 6: History
print("\n6. Listing history...")
response = requests.get(f"{BASE_URL}/history", headers=headers)
entries = response.json()["data"]
print(f"   Status: {response.status_code}")
print(f"   Found {len(entries)} history entr{'y' if len(entries) == 1 else 'ies'}")

if entries:
    print("\n7. Deleting the latest history entry...")
    response = requests.delete(f"{BASE_URL}/history/{entries[0]['id']}", headers=headers)
    print(f"   Status: {response.status_code}")

print("\n" + "=" * 60)
print("[OK] Smoke Test Complete!")
print("=" * 60)
