from uuid import uuid4
from fastapi.testclient import TestClient


def post_comment(client, recipe_id, user_id, content):
    return client.post(f"/recipes/{recipe_id}/comment", json={"user_id": str(user_id), "content": content})


def test_create_and_read_comments(client: TestClient, make_user, make_recipe):
    # 1. Create users and a recipe
    author = make_user(username="author")
    commenter = make_user(username="commenter")
    recipe = make_recipe(author.id)

    # 2. Add comments; the same user may comment more than once
    assert post_comment(client, recipe["id"], commenter.id, "This is a tasty recipe!").status_code == 201
    assert post_comment(client, recipe["id"], commenter.id, "Made it again").status_code == 201
    assert post_comment(client, recipe["id"], author.id, "Thanks!").status_code == 201

    # 3. Read comments, newest first, with usernames
    response = client.get(f"/recipes/{recipe['id']}/comments")
    assert response.status_code == 200
    data = response.json()
    assert data["totalComments"] == 3
    assert [c["content"] for c in data["comments"]] == ["Thanks!", "Made it again", "This is a tasty recipe!"]
    assert [c["user"]["username"] for c in data["comments"]] == ["author", "commenter", "commenter"]


def test_comments_for_recipe_without_comments(client: TestClient, make_user, make_recipe):
    recipe = make_recipe(make_user().id)
    assert client.get(f"/recipes/{recipe['id']}/comments").json() == {"comments": [], "totalComments": 0}


def test_comment_validation(client: TestClient, make_user, make_recipe):
    user = make_user()
    recipe = make_recipe(user.id)

    response = post_comment(client, recipe["id"], user.id, "   ")
    assert response.status_code == 400
    assert response.json()["errors"][0]["field"] == "content"

    response = client.post(f"/recipes/{recipe['id']}/comment", json={"content": "No user"})
    assert response.status_code == 400

    assert post_comment(client, uuid4(), user.id, "Hello").status_code == 404
    assert post_comment(client, recipe["id"], uuid4(), "Hello").status_code == 404
    assert post_comment(client, "bad-id", user.id, "Hello").status_code == 400


def test_delete_comment(client: TestClient, make_user, make_recipe):
    user = make_user()
    recipe = make_recipe(user.id)
    other = make_recipe(user.id, title="Other")
    post_comment(client, recipe["id"], user.id, "Delete me")
    comment_id = client.get(f"/recipes/{recipe['id']}/comments").json()["comments"][0]["id"]

    # Comment does not belong to the other recipe
    response = client.delete(f"/recipes/{other['id']}/comments/{comment_id}")
    assert response.status_code == 400

    response = client.delete(f"/recipes/{recipe['id']}/comments/{comment_id}")
    assert response.status_code == 200
    assert response.json() == {"message": "Comment deleted successfully"}
    assert client.get(f"/recipes/{recipe['id']}/comments").json()["totalComments"] == 0

    response = client.delete(f"/recipes/{recipe['id']}/comments/{comment_id}")
    assert response.status_code == 404
