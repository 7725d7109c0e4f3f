"""
PostDesk — Post Route Integration Tests
=========================================

What:  Exercises the seven post actions end to end through the ASGI app.
How:   HTTPX AsyncClient + ASGITransport against a throwaway SQLite file.
       `page_client` asks for JSON pages; `test_client` gets HTML like a browser.

What we test:
    ✅ Each action returns the right page or 303 redirect
    ✅ Invalid submissions re-render the form with errors and old input (422)
    ✅ Missing and non-numeric ids give the not-found page (404)
    ✅ HTML forms reach PUT/DELETE through the _method field
"""

import pytest


# ══════════════════════════════════════════════════════════════════════════
# Read actions
# ══════════════════════════════════════════════════════════════════════════

class TestIndex:

    @pytest.mark.asyncio
    async def test_root_redirects_to_index(self, test_client):
        response = await test_client.get("/")
        assert response.status_code == 302
        assert response.headers["location"] == "/posts"

    @pytest.mark.asyncio
    async def test_empty_index_page(self, page_client):
        response = await page_client.get("/posts")

        assert response.status_code == 200
        assert response.headers["X-PostDesk"] == "true"
        page = response.json()
        assert page["component"] == "posts/index"
        assert page["props"] == {"posts": []}
        assert page["url"] == "/posts"

    @pytest.mark.asyncio
    async def test_empty_index_html_shows_empty_state(self, test_client):
        response = await test_client.get("/posts")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/html")
        assert "No posts found. Start by creating one!" in response.text
        assert "data-page=" in response.text

    @pytest.mark.asyncio
    async def test_index_lists_every_post_in_storage_order(self, page_client, make_post):
        first = await make_post(title="First", content="One")
        second = await make_post(title="Second", content="Two")

        page = (await page_client.get("/posts")).json()

        assert [post["id"] for post in page["props"]["posts"]] == [first.id, second.id]
        assert set(page["props"]["posts"][0]) == {
            "id", "title", "content", "created_at", "updated_at"
        }

    @pytest.mark.asyncio
    async def test_index_html_links_to_each_action(self, test_client, make_post):
        post = await make_post(title="Linked", content="Body")

        html = (await test_client.get("/posts")).text

        assert f'href="/posts/{post.id}"' in html
        assert f'href="/posts/{post.id}/edit"' in html
        assert 'name="_method" value="DELETE"' in html
        assert "No posts found" not in html

    @pytest.mark.asyncio
    async def test_page_carries_route_table(self, page_client):
        routes = (await page_client.get("/posts")).json()["routes"]

        assert routes["posts.index"] == "/posts"
        assert routes["posts.edit"] == "/posts/{post_id}/edit"
        assert routes["posts.update"] == "/posts/{post_id}"
        assert routes["posts.destroy"] == "/posts/{post_id}"

    @pytest.mark.asyncio
    async def test_html_and_json_vary_on_page_header(self, test_client):
        response = await test_client.get("/posts")
        assert "X-PostDesk" in response.headers["vary"]


class TestShowAndForms:

    @pytest.mark.asyncio
    async def test_show_existing_post(self, page_client, make_post):
        post = await make_post(title="Shown", content="Full body")

        response = await page_client.get(f"/posts/{post.id}")

        assert response.status_code == 200
        page = response.json()
        assert page["component"] == "posts/show"
        assert page["props"]["post"]["title"] == "Shown"
        assert page["props"]["post"]["content"] == "Full body"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("path", ["/posts/999", "/posts/999/edit", "/posts/abc", "/posts/abc/edit"])
    async def test_missing_or_malformed_id_is_not_found(self, page_client, path):
        response = await page_client.get(path)

        assert response.status_code == 404
        assert response.json()["component"] == "errors/not-found"

    @pytest.mark.asyncio
    async def test_not_found_html(self, test_client):
        response = await test_client.get("/posts/999")

        assert response.status_code == 404
        assert "not found" in response.text.lower()

    @pytest.mark.asyncio
    async def test_create_form_is_blank(self, page_client):
        page = (await page_client.get("/posts/create")).json()

        assert page["component"] == "posts/create"
        assert page["props"] == {"errors": {}, "old": {}}

    @pytest.mark.asyncio
    async def test_edit_form_is_seeded(self, page_client, make_post):
        post = await make_post(title="Seed", content="Stored body")

        page = (await page_client.get(f"/posts/{post.id}/edit")).json()

        assert page["component"] == "posts/edit"
        assert page["props"]["post"]["title"] == "Seed"
        assert page["props"]["errors"] == {}

    @pytest.mark.asyncio
    async def test_edit_form_html_has_stored_values(self, test_client, make_post):
        post = await make_post(title="Seed title", content="Stored body")

        html = (await test_client.get(f"/posts/{post.id}/edit")).text

        assert 'value="Seed title"' in html
        assert "Stored body</textarea>" in html
        assert 'name="_method" value="PUT"' in html


# ══════════════════════════════════════════════════════════════════════════
# Write actions
# ══════════════════════════════════════════════════════════════════════════

class TestStore:

    @pytest.mark.asyncio
    async def test_store_redirects_to_index(self, page_client, stored_posts):
        response = await page_client.post("/posts", json={"title": "Hello", "content": "World"})

        assert response.status_code == 303
        assert response.headers["location"] == "/posts"
        rows = await stored_posts()
        assert [(row.title, row.content) for row in rows] == [("Hello", "World")]
        assert rows[0].created_at is not None
        assert rows[0].updated_at is not None

    @pytest.mark.asyncio
    async def test_store_then_index_shows_post(self, page_client):
        response = await page_client.post(
            "/posts", json={"title": "Hello", "content": "World"}, follow_redirects=True
        )

        page = response.json()
        assert page["component"] == "posts/index"
        assert [post["title"] for post in page["props"]["posts"]] == ["Hello"]

    @pytest.mark.asyncio
    async def test_store_trims_values(self, page_client, stored_posts):
        await page_client.post("/posts", json={"title": "  Hello  ", "content": " World "})

        rows = await stored_posts()
        assert (rows[0].title, rows[0].content) == ("Hello", "World")

    @pytest.mark.asyncio
    async def test_store_missing_title(self, page_client, stored_posts):
        response = await page_client.post("/posts", json={"title": "", "content": "Body"})

        assert response.status_code == 422
        page = response.json()
        assert page["component"] == "posts/create"
        assert page["props"]["errors"] == {"title": ["The title field is required."]}
        assert page["props"]["old"] == {"title": "", "content": "Body"}
        assert await stored_posts() == []

    @pytest.mark.asyncio
    async def test_store_malformed_json(self, page_client, stored_posts):
        response = await page_client.post(
            "/posts", content=b"{not json", headers={"Content-Type": "application/json"}
        )

        assert response.status_code == 422
        assert set(response.json()["props"]["errors"]) == {"title", "content"}
        assert await stored_posts() == []

    @pytest.mark.asyncio
    async def test_store_from_html_form(self, test_client, stored_posts):
        response = await test_client.post("/posts", data={"title": "Form", "content": "Posted"})

        assert response.status_code == 303
        assert [row.title for row in await stored_posts()] == ["Form"]

    @pytest.mark.asyncio
    async def test_store_invalid_html_form_shows_errors(self, test_client):
        response = await test_client.post("/posts", data={"title": "Kept", "content": ""})

        assert response.status_code == 422
        assert "The content field is required." in response.text
        assert 'value="Kept"' in response.text


class TestUpdate:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("method", ["PUT", "PATCH"])
    async def test_update_replaces_fields(self, page_client, make_post, stored_posts, method):
        post = await make_post(title="Old", content="Old body")

        response = await page_client.request(
            method, f"/posts/{post.id}", json={"title": "New", "content": "New body"}
        )

        assert response.status_code == 303
        assert response.headers["location"] == "/posts"
        row = (await stored_posts())[0]
        assert (row.id, row.title, row.content) == (post.id, "New", "New body")
        assert row.updated_at >= row.created_at

    @pytest.mark.asyncio
    async def test_update_leaves_other_posts_alone(self, page_client, make_post, stored_posts):
        target = await make_post(title="Target", content="Old body")
        other = await make_post(title="Other", content="Other body")

        response = await page_client.put(
            f"/posts/{target.id}", json={"title": "Changed", "content": "New body"}
        )

        assert response.status_code == 303
        rows = {row.id: (row.title, row.content) for row in await stored_posts()}
        assert rows == {
            target.id: ("Changed", "New body"),
            other.id: ("Other", "Other body"),
        }

    @pytest.mark.asyncio
    async def test_update_invalid_rerenders_edit(self, page_client, make_post, stored_posts):
        post = await make_post(title="Old", content="Old body")

        response = await page_client.put(f"/posts/{post.id}", json={"title": "New", "content": "  "})

        assert response.status_code == 422
        page = response.json()
        assert page["component"] == "posts/edit"
        assert page["props"]["errors"] == {"content": ["The content field is required."]}
        assert page["props"]["old"] == {"title": "New", "content": "  "}
        assert page["props"]["post"]["title"] == "Old"
        row = (await stored_posts())[0]
        assert (row.title, row.content) == ("Old", "Old body")

    @pytest.mark.asyncio
    async def test_update_requires_both_fields(self, page_client, make_post):
        post = await make_post()

        response = await page_client.patch(f"/posts/{post.id}", json={"title": "Only title"})

        assert response.status_code == 422
        assert "content" in response.json()["props"]["errors"]

    @pytest.mark.asyncio
    async def test_update_missing_post_is_not_found(self, page_client):
        response = await page_client.put("/posts/999", json={"title": "", "content": ""})

        assert response.status_code == 404
        assert response.json()["component"] == "errors/not-found"

    @pytest.mark.asyncio
    async def test_update_via_method_override(self, test_client, make_post, stored_posts):
        post = await make_post(title="Old", content="Old body")

        response = await test_client.post(
            f"/posts/{post.id}",
            data={"_method": "PUT", "title": "Overridden", "content": "Body"},
        )

        assert response.status_code == 303
        assert (await stored_posts())[0].title == "Overridden"


class TestDestroy:

    @pytest.mark.asyncio
    async def test_destroy_removes_post(self, page_client, make_post, stored_posts):
        keep = await make_post(title="Keep")
        gone = await make_post(title="Gone")

        response = await page_client.delete(f"/posts/{gone.id}")

        assert response.status_code == 303
        assert response.headers["location"] == "/posts"
        assert [row.id for row in await stored_posts()] == [keep.id]

        follow = await page_client.get(f"/posts/{gone.id}")
        assert follow.status_code == 404

    @pytest.mark.asyncio
    async def test_destroy_missing_post(self, page_client):
        response = await page_client.delete("/posts/999")

        assert response.status_code == 404
        assert response.json()["component"] == "errors/not-found"

    @pytest.mark.asyncio
    async def test_destroy_missing_post_keeps_existing(self, page_client, make_post, stored_posts):
        kept = await make_post(title="Kept", content="Body")

        response = await page_client.delete("/posts/999")

        assert response.status_code == 404
        rows = [(row.id, row.title, row.content) for row in await stored_posts()]
        assert rows == [(kept.id, "Kept", "Body")]

    @pytest.mark.asyncio
    async def test_destroy_from_html_form(self, test_client, make_post, stored_posts):
        post = await make_post()

        response = await test_client.post(f"/posts/{post.id}", data={"_method": "DELETE"})

        assert response.status_code == 303
        assert await stored_posts() == []

    @pytest.mark.asyncio
    async def test_ids_are_not_reused(self, page_client, make_post, stored_posts):
        first = await make_post(title="First")
        await page_client.delete(f"/posts/{first.id}")

        await page_client.post("/posts", json={"title": "Next", "content": "Body"})

        assert (await stored_posts())[0].id > first.id


class TestErrors:

    @pytest.mark.asyncio
    async def test_wrong_method_renders_error_page(self, page_client):
        response = await page_client.delete("/posts")

        assert response.status_code == 405
        assert response.json()["component"] == "errors/error"
        assert "allow" in response.headers

    @pytest.mark.asyncio
    async def test_unknown_path_renders_not_found(self, test_client):
        response = await test_client.get("/nowhere")

        assert response.status_code == 404
        assert response.headers["content-type"].startswith("text/html")
