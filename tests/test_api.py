import html
import re
import uuid
from decimal import Decimal
from urllib.parse import parse_qs, urlsplit

from conftest import PASSWORD
from gamestore.core.config import settings
from gamestore.db.models import RoleName
from gamestore.services import media as media_service


def link_in(body: str) -> str:
    return html.unescape(re.search(r'href="([^"]+)"', body).group(1))


# ------- cart & checkout -------
async def test_cart_requires_token(client):
    resp = await client.get("/api/user/shopping-cart")
    assert resp.status_code == 401


async def test_cart_flow(client, customer, game_a, game_b, auth):
    headers = auth(customer)
    assert (await client.post(f"/api/user/shopping-cart/add-game/{game_a.id}", headers=headers)).status_code == 200
    assert (await client.post(f"/api/user/shopping-cart/add-game/{game_b.id}", headers=headers)).status_code == 200

    resp = await client.get("/api/user/shopping-cart", headers=headers)

    assert resp.status_code == 200
    body = resp.json()
    assert body["item_count"] == 2
    assert Decimal(str(body["total_price"])) == Decimal("25.00")
    assert [g["title"] for g in body["games"]] == ["Alpha Quest", "Beta Strike"]
    # amounts are JSON numbers
    assert body["total_price"] == 25.0
    assert [g["price"] for g in body["games"]] == [10.0, 15.0]


async def test_cart_errors(client, customer, game_a, auth):
    headers = auth(customer)
    resp = await client.delete(f"/api/user/shopping-cart/remove-game/{game_a.id}", headers=headers)
    assert resp.status_code == 404

    await client.post(f"/api/user/shopping-cart/add-game/{game_a.id}", headers=headers)
    resp = await client.post(f"/api/user/shopping-cart/add-game/{game_a.id}", headers=headers)
    assert resp.status_code == 400
    assert resp.json() == {"detail": "Game is already in the shopping cart."}

    resp = await client.post(f"/api/user/shopping-cart/add-game/{uuid.uuid4()}", headers=headers)
    assert resp.status_code == 404


async def test_checkout_over_http(client, customer, game_a, game_b, auth, notifier):
    headers = auth(customer)
    await client.post(f"/api/user/shopping-cart/add-game/{game_a.id}", headers=headers)
    await client.post(f"/api/user/shopping-cart/add-game/{game_b.id}", headers=headers)

    resp = await client.post("/api/user/shopping-cart/checkout", headers=headers)

    assert resp.status_code == 200
    order_id = resp.json()["order_id"]
    orders = (await client.get("/api/user/orders", headers=headers)).json()
    assert [o["id"] for o in orders] == [order_id]
    assert orders[0]["status"] == "Approved"
    assert Decimal(str(orders[0]["total_price"])) == Decimal("25.00")
    library = (await client.get("/api/user/library", headers=headers)).json()
    assert {g["title"] for g in library} == {"Alpha Quest", "Beta Strike"}
    cart = (await client.get("/api/user/shopping-cart", headers=headers)).json()
    assert cart["item_count"] == 0
    assert len(notifier.sent) == 1


async def test_checkout_without_cart_or_items(client, customer, auth):
    headers = auth(customer)
    resp = await client.post("/api/user/shopping-cart/checkout", headers=headers)
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Shopping cart is not found."

    await client.get("/api/user/shopping-cart", headers=headers)
    resp = await client.post("/api/user/shopping-cart/checkout", headers=headers)
    assert resp.status_code == 400


async def test_order_of_another_customer_is_hidden(client, customer, other_customer, game_a, auth):
    await client.post(f"/api/user/shopping-cart/add-game/{game_a.id}", headers=auth(customer))
    order_id = (await client.post("/api/user/shopping-cart/checkout", headers=auth(customer))).json()["order_id"]

    assert (await client.get(f"/api/user/order/{order_id}", headers=auth(customer))).status_code == 200
    assert (await client.get(f"/api/user/order/{order_id}", headers=auth(other_customer))).status_code == 404
    assert (await client.get("/api/user/order/9999", headers=auth(customer))).status_code == 404


async def test_direct_library_purchase(client, customer, game_a, auth):
    headers = auth(customer)
    resp = await client.post(f"/api/user/library/add-game/{game_a.id}", headers=headers)
    assert resp.status_code == 200

    resp = await client.post(f"/api/user/library/add-game/{game_a.id}", headers=headers)
    assert resp.status_code == 400
    assert len((await client.get("/api/user/orders", headers=headers)).json()) == 1


# ------- auth -------
REGISTRATION = {
    "username": "dave",
    "email": "dave@example.com",
    "first_name": "Dave",
    "last_name": "Player",
    "age": 25,
    "password": PASSWORD,
    "confirm_password": PASSWORD,
}

async def test_register_confirm_login(client, notifier):
    resp = await client.post("/api/auth/register", json=REGISTRATION)
    assert resp.status_code == 200

    login = {"username": "dave", "password": PASSWORD}
    assert (await client.post("/api/auth/login", json=login)).status_code == 401

    to, _, body = notifier.sent[-1]
    assert to == "dave@example.com"
    resp = await client.get(link_in(body))
    assert resp.status_code == 307
    assert "confirmed%20successfully" in resp.headers["location"]

    resp = await client.post("/api/auth/login", json=login)
    assert resp.status_code == 200
    token = resp.json()["token"]
    me = await client.get("/api/auth/user", headers={"Authorization": f"Bearer {token}"})
    assert me.json()["username"] == "dave"
    assert me.json()["is_confirmed"] is True


async def test_register_duplicate(client, customer):
    resp = await client.post("/api/auth/register", json={**REGISTRATION, "email": customer.email})
    assert resp.status_code == 409


async def test_register_rejects_weak_password(client):
    weak = {**REGISTRATION, "password": "password", "confirm_password": "password"}
    assert (await client.post("/api/auth/register", json=weak)).status_code == 422


async def test_login_with_wrong_password(client, customer):
    resp = await client.post("/api/auth/login", json={"username": customer.username, "password": "Wrong#999"})
    assert resp.status_code == 401


async def test_password_reset(client, customer, notifier):
    resp = await client.post("/api/auth/forgot-password", json={"email": customer.email})
    assert resp.status_code == 200

    query = {k: v[0] for k, v in parse_qs(urlsplit(link_in(notifier.sent[-1][2])).query).items()}
    reset = {"user_id": query["user_id"], "token": query["token"], "password": "Changed#456"}
    assert (await client.post("/api/auth/reset-password", json=reset)).status_code == 200
    # the token dies with the old password
    assert (await client.post("/api/auth/reset-password", json=reset)).status_code == 400

    login = {"username": customer.username, "password": "Changed#456"}
    assert (await client.post("/api/auth/login", json=login)).status_code == 200


async def test_forgot_password_unknown_email(client):
    resp = await client.post("/api/auth/forgot-password", json={"email": "nobody@example.com"})
    assert resp.status_code == 404
    assert resp.json() == {"detail": "Provided email is not valid."}


# ------- profile -------
async def test_profile_picture_upload(client, customer, auth, media):
    files = {"file": ("me.png", b"\x89PNG fake", "image/png")}
    resp = await client.post("/api/user/profile/image-upload", files=files, headers=auth(customer))

    assert resp.status_code == 200
    assert resp.json()["file_url"].startswith("https://media.example.com/profile-images/alice_")
    assert media.uploads[0][0] == "profile-images"


async def test_profile_picture_rejects_other_files(client, customer, auth, media):
    files = {"file": ("me.exe", b"MZ", "application/octet-stream")}
    resp = await client.post("/api/user/profile/image-upload", files=files, headers=auth(customer))
    assert resp.status_code == 400
    assert media.uploads == []


PROFILE = {"email": "alice.smith@example.com", "first_name": "Alice", "last_name": "Smith", "age": 31}

async def test_edit_profile(client, customer, auth):
    headers = auth(customer)
    resp = await client.post("/api/user/edit-profile", json=PROFILE, headers=headers)
    assert resp.status_code == 200

    me = (await client.get("/api/auth/user", headers=headers)).json()
    assert (me["email"], me["last_name"], me["age"]) == ("alice.smith@example.com", "Smith", 31)


async def test_edit_profile_with_taken_email(client, customer, other_customer, auth):
    body = {**PROFILE, "email": other_customer.email.upper()}
    resp = await client.post("/api/user/edit-profile", json=body, headers=auth(customer))
    assert resp.status_code == 409
    assert resp.json() == {"detail": "The email address is already in use."}


async def test_change_password(client, customer, auth):
    headers = auth(customer)
    wrong = {"password": "Wrong#999", "new_password": "Changed#456", "confirm_password": "Changed#456"}
    resp = await client.post("/api/user/change-password", json=wrong, headers=headers)
    assert resp.status_code == 400
    assert resp.json() == {"detail": "Failed to change password."}

    mismatch = {"password": PASSWORD, "new_password": "Changed#456", "confirm_password": "Changed#457"}
    assert (await client.post("/api/user/change-password", json=mismatch, headers=headers)).status_code == 422

    ok = {"password": PASSWORD, "new_password": "Changed#456", "confirm_password": "Changed#456"}
    assert (await client.post("/api/user/change-password", json=ok, headers=headers)).status_code == 200

    login = {"username": customer.username, "password": "Changed#456"}
    assert (await client.post("/api/auth/login", json=login)).status_code == 200
    old_login = {"username": customer.username, "password": PASSWORD}
    assert (await client.post("/api/auth/login", json=old_login)).status_code == 401
    # tokens issued before the change are revoked
    assert (await client.get("/api/user/library", headers=headers)).status_code == 401


# ------- catalog -------
NEW_GAME = {
    "title": "Gamma Rising",
    "description": "Space strategy with a twist.",
    "image_url": "https://img.example.com/gamma.png",
    "release_date": "2021-05-01",
    "publisher": "Orbit",
    "genre": "RPG",
    "price": "20.00",
}

async def test_games_and_comments(client, customer, game_a, auth):
    games = (await client.get("/api/games")).json()
    assert [g["title"] for g in games] == ["Alpha Quest"]
    assert games[0]["genre"] == "RPG"

    resp = await client.post(
        "/api/games/game-details/comment/add",
        json={"game_id": str(game_a.id), "content": "Great fun."},
        headers=auth(customer),
    )
    assert resp.status_code == 201

    comments = (await client.get(f"/api/games/game-details/comments/{game_a.id}")).json()
    assert [(c["author_name"], c["content"]) for c in comments] == [("alice", "Great fun.")]
    assert (await client.get(f"/api/games/{uuid.uuid4()}")).status_code == 404


# ------- admin -------
async def test_admin_routes_need_admin(client, customer, auth):
    assert (await client.get("/api/admin/users")).status_code == 401
    assert (await client.get("/api/admin/users", headers=auth(customer))).status_code == 403


async def test_admin_manages_games(client, admin, genre, auth):
    headers = auth(admin)
    resp = await client.post("/api/admin/add-game", json=NEW_GAME, headers=headers)
    assert resp.status_code == 201
    game = resp.json()
    assert Decimal(str(game["price"])) == Decimal("20.00")

    resp = await client.put(f"/api/admin/update-game/{game['id']}", json={**NEW_GAME, "price": "5.00"}, headers=headers)
    assert resp.status_code == 200
    assert Decimal(str(resp.json()["price"])) == Decimal("5.00")

    resp = await client.post("/api/admin/add-game", json={**NEW_GAME, "genre": "Horror"}, headers=headers)
    assert resp.status_code == 404

    assert (await client.delete(f"/api/admin/delete-game/{game['id']}", headers=headers)).status_code == 200
    assert (await client.get(f"/api/games/{game['id']}")).status_code == 404


async def test_admin_manages_genres(client, admin, game_a, auth):
    headers = auth(admin)
    body = {"name": "Horror", "description": "Games meant to scare."}
    resp = await client.post("/api/admin/add-genre", json=body, headers=headers)
    assert resp.status_code == 201
    assert (await client.post("/api/admin/add-genre", json=body, headers=headers)).status_code == 409

    genres = (await client.get("/api/admin/genres", headers=headers)).json()
    rpg = next(g for g in genres if g["name"] == "RPG")
    assert (await client.delete(f"/api/admin/delete-genre/{rpg['id']}", headers=headers)).status_code == 409


async def test_admin_manages_users(client, admin, customer, auth):
    headers = auth(admin)
    assert (await client.post(f"/api/admin/user/disable/{customer.id}", headers=headers)).status_code == 200
    login = {"username": customer.username, "password": PASSWORD}
    assert (await client.post("/api/auth/login", json=login)).status_code == 401

    assert (await client.post(f"/api/admin/user/promote/{customer.id}", headers=headers)).status_code == 200
    users = (await client.get("/api/admin/users", headers=headers)).json()
    assert {u["username"]: u["role"] for u in users} == {"alice": "Admin", "root": "Admin"}


async def test_admin_add_game_mirrors_media(client, admin, genre, auth, media, monkeypatch):
    monkeypatch.setattr(settings, "MIRROR_GAME_MEDIA", True)
    monkeypatch.setattr(media_service, "_fetch", lambda url: b"remote bytes")
    body = {**NEW_GAME, "video_url": "https://cdn.example.com/trailer.mp4"}

    resp = await client.post("/api/admin/add-game", json=body, headers=auth(admin))

    assert resp.status_code == 201
    game = resp.json()
    assert game["image_url"].startswith("https://media.example.com/images/")
    assert game["image_url"].endswith(".png")
    assert game["video_url"].startswith("https://media.example.com/videos/")
    assert game["video_url"].endswith(".mp4")
    assert [(folder, name.rsplit(".", 1)[1], data) for folder, name, data in media.uploads] == [
        ("images", "png", b"remote bytes"),
        ("videos", "mp4", b"remote bytes"),
    ]


async def test_admin_add_game_fails_when_media_download_fails(client, admin, genre, auth, media, monkeypatch):
    def unreachable(url):
        raise OSError("connection refused")

    monkeypatch.setattr(settings, "MIRROR_GAME_MEDIA", True)
    monkeypatch.setattr(media_service, "_fetch", unreachable)

    resp = await client.post("/api/admin/add-game", json=NEW_GAME, headers=auth(admin))

    assert resp.status_code == 500
    assert resp.json() == {"detail": "Could not download https://img.example.com/gamma.png."}
    assert media.uploads == []
    assert (await client.get("/api/games")).json() == []


async def test_disabled_user_token_is_revoked(client, admin, customer, auth):
    headers = auth(customer)
    assert (await client.get("/api/user/shopping-cart", headers=headers)).status_code == 200

    await client.post(f"/api/admin/user/disable/{customer.id}", headers=auth(admin))

    assert (await client.get("/api/user/shopping-cart", headers=headers)).status_code == 401


async def test_demoted_admin_loses_admin_access(client, admin, make_user, auth):
    deputy = await make_user("deputy", role=RoleName.ADMIN)
    old_headers = auth(deputy)
    assert (await client.get("/api/admin/users", headers=old_headers)).status_code == 200

    await client.post(f"/api/admin/user/demote/{deputy.id}", headers=auth(admin))

    assert (await client.get("/api/admin/users", headers=old_headers)).status_code == 401
    token = (await client.post("/api/auth/login", json={"username": "deputy", "password": PASSWORD})).json()["token"]
    resp = await client.get("/api/admin/users", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 403


async def test_old_confirmation_link_cannot_reenable_account(client, admin, auth, notifier):
    await client.post("/api/auth/register", json=REGISTRATION)
    link = link_in(notifier.sent[-1][2])
    assert (await client.get(link)).status_code == 307
    users = (await client.get("/api/admin/users", headers=auth(admin))).json()
    dave = next(u for u in users if u["username"] == "dave")

    await client.post(f"/api/admin/user/disable/{dave['id']}", headers=auth(admin))

    resp = await client.get(link)
    assert resp.status_code == 307
    assert "confirmation%20failed" in resp.headers["location"]
    login = {"username": "dave", "password": PASSWORD}
    assert (await client.post("/api/auth/login", json=login)).status_code == 401


# ------- service endpoints -------
async def test_health_and_metrics(client):
    assert (await client.get("/health")).json() == {"status": "ok"}
    resp = await client.get("/metrics")
    assert resp.status_code == 200
    assert "api_requests_total" in resp.text
