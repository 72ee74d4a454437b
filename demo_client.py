#!/usr/bin/env python3
"""Demo client that walks the Complaint service HTTP API end to end."""
import requests
from services.complaint import config

API_URL = f"http://localhost:{config.PORT}/api"


def login(mobile: str, role: str) -> dict:
    resp = requests.post(f"{API_URL}/auth/otp", json={"mobile": mobile}, timeout=5)
    resp.raise_for_status()
    print(f"OTP sent to {resp.json()['sentTo']}")

    # Any 4-digit code is accepted by the simulated login
    resp = requests.post(f"{API_URL}/auth/verify", json={"mobile": mobile, "otp": "1234", "role": role}, timeout=5)
    resp.raise_for_status()
    user = resp.json()
    print(f"✓ Logged in as {user['name']} ({user['id']})")
    return user


def demo():
    print("\n" + "=" * 70)
    print("🏛️  CIVICPULSE DEMO - Grievance intake and triage")
    print("=" * 70)

    citizen = login("9876543210", "citizen")

    grievances = [
        ("Broken Streetlight", "Pole 45 flickering at night"),
        ("Water logging", "Main road near the bus stand floods after every rain."),
        ("Garbage not collected", "Bins in Sector 9 have not been emptied for a week."),
    ]

    created = []
    for title, description in grievances:
        # The classification call can take a few seconds with a live key
        resp = requests.post(f"{API_URL}/complaints", json={
            "title": title,
            "description": description,
            "userId": citizen["id"],
            "location": {"latitude": 28.6139, "longitude": 77.2090, "address": "28.6139, 77.2090"},
        }, timeout=60)
        resp.raise_for_status()
        complaint = resp.json()
        created.append(complaint)
        analysis = complaint["aiAnalysis"]
        print(f"\n{'Filed:':<12} {complaint['id']} {title}")
        print(f"{'AI triage:':<12} {analysis['category']} / {analysis['priority']}")
        print(f"{'Action:':<12} {analysis['suggestedAction']}")

    print("\n" + "-" * 70)
    login("9123456780", "admin")

    resp = requests.patch(f"{API_URL}/complaints/{created[0]['id']}", json={"status": "In Progress"}, timeout=5)
    resp.raise_for_status()
    print(f"✓ {created[0]['id']} -> {resp.json()['status']}")

    resp = requests.patch(f"{API_URL}/complaints/{created[1]['id']}", json={"status": "Resolved"}, timeout=5)
    resp.raise_for_status()
    print(f"✓ {created[1]['id']} -> {resp.json()['status']}")

    stats = requests.get(f"{API_URL}/stats", timeout=5).json()
    print(f"\nTotal complaints: {stats['total']}")
    for status, count in stats["byStatus"].items():
        print(f"  {status:<12} {count}")
    for category, count in stats["byCategory"].items():
        print(f"  {category:<26} {count}")

    mine = requests.get(f"{API_URL}/users/{citizen['id']}/complaints", timeout=5).json()
    print(f"\nCitizen {citizen['id']} has {len(mine)} complaint(s) on file")


if __name__ == "__main__":
    try:
        demo()
    except requests.exceptions.ConnectionError:
        print(f"❌ Could not reach {API_URL}. Start it with: python services/complaint/service.py")
