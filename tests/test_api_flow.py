# tests/test_api_flow.py
"""
End-to-end through HTTP: account -> invite -> accept -> roles, plus the
audit trail the requests leave behind.
"""


def _create_account(client, headers, name="Family"):
    r = client.post("/api/accounts", headers=headers, json={"name": name, "currency": "USD"})
    assert r.status_code == 201, r.text
    return r.json()


def _member_id(client, headers, account_id, email):
    members = client.get(f"/api/accounts/{account_id}/members", headers=headers).json()
    return next(m["id"] for m in members if m["user"]["email"] == email)


def test_invite_accept_and_roles(client, signup):
    owner, owner_h = signup("owner@test.com")
    guest, guest_h = signup("guest@test.com")
    account = _create_account(client, owner_h)
    assert account["currency"] == "USD"

    r = client.post(
        "/api/invites",
        headers=owner_h,
        json={"email": "Guest@Test.com", "accountId": account["id"], "role": "MEMBER"},
    )
    assert r.status_code == 201, r.text
    invite = r.json()
    assert invite["status"] == "PENDING"
    assert invite["email"] == "guest@test.com"

    # a second live invite for the same pair is refused
    again = client.post(
        "/api/invites", headers=owner_h,
        json={"email": "guest@test.com", "accountId": account["id"]},
    )
    assert again.status_code == 400
    assert again.json() == {"message": "Invite already exists."}

    received = client.get("/api/invites/received", headers=guest_h).json()
    assert [i["id"] for i in received] == [invite["id"]]
    assert received[0]["account"]["name"] == "Family"
    assert received[0]["invitedBy"]["email"] == "owner@test.com"

    r = client.post(f"/api/invites/{invite['token']}/accept", headers=guest_h)
    assert r.status_code == 200, r.text
    assert r.json()["role"] == "MEMBER"

    detail = client.get(f"/api/accounts/{account['id']}", headers=guest_h).json()
    assert {m["user"]["email"] for m in detail["users"]} == {"owner@test.com", "guest@test.com"}

    # MEMBER cannot manage members
    guest_mid = _member_id(client, owner_h, account["id"], "guest@test.com")
    r = client.patch(
        f"/api/accounts/{account['id']}/members/{guest_mid}",
        headers=guest_h, json={"role": "ADMIN"},
    )
    assert r.status_code == 403

    r = client.patch(
        f"/api/accounts/{account['id']}/members/{guest_mid}",
        headers=owner_h, json={"role": "OWNER"},
    )
    assert r.status_code == 200
    assert r.json()["role"] == "OWNER"

    owner_mid = _member_id(client, owner_h, account["id"], "owner@test.com")
    r = client.patch(
        f"/api/accounts/{account['id']}/members/{owner_mid}",
        headers=owner_h, json={"role": "MEMBER"},
    )
    assert r.status_code == 400
    assert r.json() == {"message": "Owner cannot change their own role."}

    # the promoted guest may now demote the original owner
    r = client.patch(
        f"/api/accounts/{account['id']}/members/{owner_mid}",
        headers=guest_h, json={"role": "ADMIN"},
    )
    assert r.status_code == 200


def test_outsider_sees_403_and_unknown_member_404(client, signup):
    _, owner_h = signup("o@test.com")
    _, out_h = signup("x@test.com")
    account = _create_account(client, owner_h)

    assert client.get(f"/api/accounts/{account['id']}", headers=out_h).status_code == 403
    assert client.get(f"/api/transactions/account/{account['id']}", headers=out_h).status_code == 403
    r = client.delete(f"/api/accounts/{account['id']}/members/9999", headers=owner_h)
    assert r.status_code == 404


def test_invite_cancel_then_resend(client, signup):
    _, owner_h = signup("o@test.com")
    _, guest_h = signup("g@test.com")
    account = _create_account(client, owner_h)

    invite = client.post(
        "/api/invites", headers=owner_h, json={"email": "g@test.com", "accountId": account["id"]}
    ).json()
    r = client.delete(f"/api/invites/{invite['id']}", headers=owner_h)
    assert r.status_code == 200
    assert r.json()["status"] == "CANCELLED"

    # the cancelled row is reissued with a fresh token
    again = client.post(
        "/api/invites", headers=owner_h, json={"email": "g@test.com", "accountId": account["id"]}
    )
    assert again.status_code == 201
    assert again.json()["id"] == invite["id"]
    assert again.json()["token"] != invite["token"]

    r = client.post(f"/api/invites/{invite['token']}/accept", headers=guest_h)
    assert r.status_code == 400  # old token is gone

    sent = client.get("/api/invites/sent", headers=owner_h).json()
    assert [i["status"] for i in sent] == ["PENDING"]


def test_mutations_leave_an_audit_trail(client, signup):
    owner, owner_h = signup("a@test.com")
    account = _create_account(client, owner_h)
    aid = account["id"]

    r = client.post(
        "/api/transactions", headers=owner_h,
        json={"title": "Rent", "amount": 900, "type": "EXPENSE", "category": "HOUSING",
              "accountId": aid},
    )
    assert r.status_code == 201, r.text
    client.put(f"/api/accounts/{aid}", headers=owner_h, json={"name": "Renamed"})

    logs = client.get(f"/api/accounts/{aid}/audit-logs", headers=owner_h).json()
    assert [(entry["entityType"], entry["action"]) for entry in logs] == [
        ("Account", "UPDATE"),
        ("Transaction", "CREATE"),
        ("Account", "CREATE"),
    ]
    assert logs[0]["oldData"]["name"] == "Family"
    assert logs[0]["newData"]["name"] == "Renamed"
    assert logs[0]["performedBy"]["email"] == "a@test.com"

    only_tx = client.get(
        f"/api/accounts/{aid}/audit-logs", headers=owner_h, params={"entityType": "Transaction"}
    ).json()
    assert len(only_tx) == 1

    one = client.get(f"/api/accounts/{aid}/audit-logs/{logs[0]['id']}", headers=owner_h)
    assert one.status_code == 200

    other = _create_account(client, owner_h, name="Other")
    wrong = client.get(f"/api/accounts/{other['id']}/audit-logs/{logs[0]['id']}", headers=owner_h)
    assert wrong.status_code == 404


def test_failed_request_is_not_audited(client, signup):
    _, owner_h = signup("f@test.com")
    account = _create_account(client, owner_h)

    r = client.put(f"/api/accounts/{account['id']}", headers=owner_h, json={})
    assert r.status_code == 400
    assert r.json() == {"message": "No data provided to update."}

    logs = client.get(f"/api/accounts/{account['id']}/audit-logs", headers=owner_h).json()
    assert [entry["action"] for entry in logs] == ["CREATE"]


def test_transactions_and_goals_over_http(client, signup):
    _, h = signup("m@test.com")
    aid = _create_account(client, h)["id"]

    for title, amount, kind, cat in [
        ("Pay", 2000, "INCOME", "SALARY"),
        ("Food", 500, "EXPENSE", "FOOD"),
    ]:
        client.post(
            "/api/transactions", headers=h,
            json={"title": title, "amount": amount, "type": kind, "category": cat,
                  "accountId": aid, "date": "2025-03-10T12:00:00"},
        )

    summary = client.get(
        f"/api/transactions/summary/{aid}", headers=h, params={"month": "3", "year": "2025"}
    ).json()
    assert summary == {
        "totalIncome": 2000.0,
        "totalExpense": 500.0,
        "balance": 1500.0,
        "transactionCount": 2,
        "period": "3/2025",
    }
    board = client.get(f"/api/transactions/dashboard/{aid}", headers=h).json()
    assert len(board["latestTransactions"]) == 2
    assert board["analytics"]["categories"][0]["percentage"] == 100.0

    bad = client.post(
        "/api/transactions", headers=h,
        json={"title": "X", "amount": -1, "type": "EXPENSE", "category": "FOOD", "accountId": aid},
    )
    assert bad.status_code == 400

    goal = client.post(
        "/api/saving-goals", headers=h,
        json={"title": "Car", "targetAmount": 100, "accountId": aid},
    ).json()
    r = client.post(
        f"/api/saving-goals/{goal['id']}/move-money", headers=h, json={"amount": 80, "type": "ADD"}
    )
    assert r.status_code == 200
    r = client.post(
        f"/api/saving-goals/{goal['id']}/move-money", headers=h, json={"amount": 30, "type": "ADD"}
    )
    assert r.status_code == 400
    assert r.json() == {"message": "Target amount exceeded."}


def test_explicit_null_on_update_is_a_bad_request(client, signup):
    _, h = signup("nulls@test.com")
    aid = client.post("/api/accounts", headers=h, json={"name": "Nulls"}).json()["id"]
    txn = client.post(
        "/api/transactions", headers=h,
        json={"title": "Rent", "amount": 900, "type": "EXPENSE", "category": "HOUSING",
              "accountId": aid},
    ).json()
    for body in ({"amount": None}, {"title": None}, {"type": None}, {"category": None}):
        r = client.put(f"/api/transactions/{txn['id']}", headers=h, json=body)
        assert r.status_code == 400, body

    goal = client.post(
        "/api/saving-goals", headers=h, json={"title": "Car", "targetAmount": 100, "accountId": aid},
    ).json()
    r = client.put(f"/api/saving-goals/{goal['id']}", headers=h, json={"title": None})
    assert r.status_code == 400
    assert r.json() == {"message": "Title cannot be empty."}
