import pytest


@pytest.mark.asyncio
async def test_create_category_admin_only_and_validation(client, login_as, test_log):
    user = await login_as("plain")
    admin = await login_as("root", role_id=3)

    r = await client.post("/api/categories/", json={"name": "Python", "desc": "d"})
    assert r.status_code == 401

    r = await user.post("/api/categories/", json={"name": "Python", "desc": "d"})
    assert r.status_code == 403

    r = await admin.post(
        "/api/categories/",
        json={"name": "Python", "desc": "Всё о Python", "banner_urn": "http://x/b.png"},
    )
    assert r.status_code == 200
    assert r.json()["name"] == "Python"
    assert r.json()["banner_urn"] == "http://x/b.png"

    test_log("case-insensitive duplicate")
    r = await admin.post("/api/categories/", json={"name": "PYTHON", "desc": "d"})
    assert r.status_code == 400
    assert r.json()["detail"] == {"name": "Такая категория уже существует"}

    r = await admin.post("/api/categories/", json={"name": "  ", "desc": "d"})
    assert r.status_code == 400
    assert "name" in r.json()["detail"]


@pytest.mark.asyncio
async def test_list_and_get_category(client, category):
    r = await client.get("/api/categories/")
    assert r.status_code == 200
    assert [c["name"] for c in r.json()] == ["Python"]

    r = await client.get("/api/categories/Python")
    assert r.status_code == 200
    assert r.json()["desc"] == "Всё о Python"

    r = await client.get("/api/categories/Missing")
    assert r.status_code == 404

    r = await client.get("/api/categories/%20")
    assert r.status_code == 400


@pytest.mark.asyncio
async def test_update_category_renames_and_keeps_blogs_attached(
    client, login_as, category, test_log
):
    admin = await login_as("root", role_id=3)
    author = await login_as("alice")

    r = await author.post(
        "/api/blogs/",
        json={"title": "Post", "body": "Body", "category_name": "Python"},
    )
    slug = r.json()["slug"]
    await author.patch(f"/api/blogs/{slug}/publish")

    test_log("empty fields collected into one error")
    r = await admin.put(
        "/api/categories/", json={"old_name": "", "new_name": "", "desc": ""}
    )
    assert r.status_code == 400
    assert set(r.json()["detail"]) == {"old_name", "new_name", "desc"}

    r = await admin.put(
        "/api/categories/", json={"old_name": "Nope", "new_name": "X", "desc": "d"}
    )
    assert r.status_code == 404

    r = await author.put(
        "/api/categories/", json={"old_name": "Python", "new_name": "Py", "desc": "d"}
    )
    assert r.status_code == 403

    r = await admin.put(
        "/api/categories/",
        json={"old_name": "Python", "new_name": "Py", "desc": "Короче"},
    )
    assert r.status_code == 200
    assert r.json()["name"] == "Py"
    assert r.json()["desc"] == "Короче"
    assert r.json()["banner_urn"] is None

    r = await client.get(f"/api/blogs/{slug}")
    assert r.json()["category_name"] == "Py"

    r = await admin.put(
        "/api/categories/",
        json={"old_name": "Py", "new_name": "Py", "desc": "d", "new_banner": "http://b"},
    )
    assert r.json()["banner_urn"] == "http://b"


@pytest.mark.asyncio
async def test_upload_category_banner(login_as, category, upload_dir, db_sessionmaker):
    from app.api.models import Category
    from app.config import settings

    async with db_sessionmaker() as session:
        session.add(Category(name="Rust", desc="Rust"))
        await session.commit()

    admin = await login_as("root", role_id=3)
    user = await login_as("plain")

    files = {"file": ("banner.png", b"\x89PNG fake", "image/png")}

    r = await user.post("/api/categories/Python/banner", files=files)
    assert r.status_code == 403

    r = await admin.post("/api/categories/Missing/banner", files=files)
    assert r.status_code == 404

    r = await admin.post("/api/categories/Python/banner", files=files)
    assert r.status_code == 200
    url = r.json()["url"]
    stored = f"{category.id}_banner.png"
    assert url == f"{settings.BASE_URL}/uploads/categories/{stored}"
    assert (upload_dir / "categories" / stored).read_bytes() == b"\x89PNG fake"

    r = await admin.post(
        "/api/categories/Rust/banner",
        files={"file": ("banner.png", b"rust banner", "image/png")},
    )
    assert r.status_code == 200
    assert r.json()["url"] != url
    assert (upload_dir / "categories" / stored).read_bytes() == b"\x89PNG fake"

    r = await admin.get("/api/categories/Python")
    assert r.json()["banner_urn"] == url


@pytest.mark.asyncio
async def test_rename_category_checks_name_collisions(
    client, login_as, category, db_sessionmaker, test_log
):
    from app.api.models import Category

    async with db_sessionmaker() as session:
        session.add(Category(name="Rust", desc="Rust"))
        await session.commit()

    admin = await login_as("root", role_id=3)

    for new_name in ("python", "Python"):
        test_log(f"Rust -> {new_name} clashes with Python")
        r = await admin.put(
            "/api/categories/",
            json={"old_name": "Rust", "new_name": new_name, "desc": "d"},
        )
        assert r.status_code == 400, r.text
        assert r.json()["detail"] == {"new_name": "Такая категория уже существует"}

    test_log("changing only the case of its own name is allowed")
    r = await admin.put(
        "/api/categories/",
        json={"old_name": "Rust", "new_name": "RUST", "desc": "d"},
    )
    assert r.status_code == 200
    assert r.json()["name"] == "RUST"

    r = await client.get("/api/categories/")
    assert sorted(c["name"] for c in r.json()) == ["Python", "RUST"]
