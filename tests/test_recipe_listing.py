import pytest
from fastapi.testclient import TestClient

from recipe_share import crud


def rate(client, recipe_id, user_id, value):
    response = client.post(f"/recipes/{recipe_id}/rate", json={"user_id": str(user_id), "rating": value})
    assert response.status_code == 201, response.text


def comment(client, recipe_id, user_id, content="Nice"):
    response = client.post(f"/recipes/{recipe_id}/comment", json={"user_id": str(user_id), "content": content})
    assert response.status_code == 201, response.text


@pytest.fixture
def menu(make_user, make_recipe):
    """Three Italian dishes and one Thai, created in this order."""
    chef = make_user(username="chef")
    return {
        "chef": chef,
        "carbonara": make_recipe(chef.id, title="Pasta Carbonara", cuisine="Italian",
                                 description="Eggs, cheese and guanciale"),
        "pizza": make_recipe(chef.id, title="Margherita Pizza", cuisine="Italian",
                             description="Tomato and basil"),
        "curry": make_recipe(chef.id, title="Green Curry", cuisine="Thai",
                             description="Coconut milk and pasta-free"),
        "lasagne": make_recipe(chef.id, title="Lasagne", cuisine="Italian",
                               description="Baked pasta layers"),
    }


def titles(response):
    assert response.status_code == 200, response.text
    return [r["title"] for r in response.json()]


def test_list_defaults_to_newest_first(client: TestClient, menu):
    assert titles(client.get("/recipes")) == [
        "Lasagne", "Green Curry", "Margherita Pizza", "Pasta Carbonara"
    ]
    assert titles(client.get("/recipes", params={"sortBy": "oldest"})) == [
        "Pasta Carbonara", "Margherita Pizza", "Green Curry", "Lasagne"
    ]


def test_search_matches_title_description_and_cuisine(client: TestClient, menu):
    # Case-insensitive, across title OR description OR cuisine
    assert titles(client.get("/recipes", params={"search": "PASTA", "sortBy": "oldest"})) == [
        "Pasta Carbonara", "Green Curry", "Lasagne"
    ]
    assert titles(client.get("/recipes", params={"search": "thai"})) == ["Green Curry"]
    assert titles(client.get("/recipes", params={"search": "nothing like this"})) == []


def test_search_treats_wildcards_literally(client: TestClient, make_user, make_recipe):
    chef = make_user()
    make_recipe(chef.id, title="Pasta")
    make_recipe(chef.id, title="100% Rye")
    make_recipe(chef.id, title="Stew_v2")

    assert titles(client.get("/recipes", params={"search": "_"})) == ["Stew_v2"]
    assert titles(client.get("/recipes", params={"search": "%"})) == ["100% Rye"]
    assert titles(client.get("/recipes", params={"search": "0% r"})) == ["100% Rye"]


def test_search_and_cuisine_compose(client: TestClient, menu):
    params = {"search": "pasta", "cuisine": "Italian", "sortBy": "oldest"}
    assert titles(client.get("/recipes", params=params)) == ["Pasta Carbonara", "Lasagne"]

    # "All" is the sentinel for no cuisine filter
    params["cuisine"] = "All"
    assert titles(client.get("/recipes", params=params)) == ["Pasta Carbonara", "Green Curry", "Lasagne"]

    # Cuisine filter is an exact match
    assert titles(client.get("/recipes", params={"cuisine": "ital"})) == []


def test_sort_by_rating(client: TestClient, menu, make_user):
    fans = [make_user() for _ in range(3)]
    for fan, value in zip(fans, (5, 4, 5)):
        rate(client, menu["pizza"]["id"], fan.id, value)
    rate(client, menu["curry"]["id"], fans[0].id, 3)
    rate(client, menu["lasagne"]["id"], fans[1].id, 5)

    response = client.get("/recipes", params={"sortBy": "rating"})
    data = response.json()
    averages = [r["averageRating"] for r in data]
    assert averages == sorted(averages, reverse=True)
    assert [r["title"] for r in data] == ["Lasagne", "Margherita Pizza", "Green Curry", "Pasta Carbonara"]
    assert data[1]["averageRating"] == pytest.approx(14 / 3)
    assert data[-1]["averageRating"] == 0


def test_rating_ties_break_by_creation(client: TestClient, menu, make_user):
    fan = make_user()
    for key in ("lasagne", "carbonara", "curry"):
        rate(client, menu[key]["id"], fan.id, 4)

    assert titles(client.get("/recipes", params={"sortBy": "rating"})) == [
        "Pasta Carbonara", "Green Curry", "Lasagne", "Margherita Pizza"
    ]


def test_unknown_sort_key_is_bad_request(client: TestClient, menu):
    response = client.get("/recipes", params={"sortBy": "spiciest"})
    assert response.status_code == 400
    assert response.json()["errors"][0]["field"] == "sortBy"


def test_aggregates_do_not_duplicate_recipes(client: TestClient, menu, make_user):
    users = [make_user() for _ in range(3)]
    for user in users:
        rate(client, menu["carbonara"]["id"], user.id, 4)
        comment(client, menu["carbonara"]["id"], user.id)
        comment(client, menu["carbonara"]["id"], user.id, "Again")

    response = client.get("/recipe-overview")
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    data = body["data"]
    assert len(data) == 4
    assert len({r["id"] for r in data}) == 4

    by_title = {r["title"]: r for r in data}
    carbonara = by_title["Pasta Carbonara"]
    assert carbonara["averageRating"] == 4
    assert carbonara["totalRatings"] == 3
    assert carbonara["totalComments"] == 6
    assert carbonara["author"]["username"] == "chef"

    pizza = by_title["Margherita Pizza"]
    assert (pizza["averageRating"], pizza["totalRatings"], pizza["totalComments"]) == (0, 0, 0)


def test_derived_values_follow_child_rows(client: TestClient, db, menu, make_user):
    fan = make_user()
    rate(client, menu["curry"]["id"], fan.id, 2)
    comment(client, menu["curry"]["id"], fan.id)

    summary = {r["title"]: r for r in client.get("/recipe-overview").json()["data"]}["Green Curry"]
    assert (summary["averageRating"], summary["totalRatings"], summary["totalComments"]) == (2, 1, 1)

    comment_id = client.get(f"/recipes/{menu['curry']['id']}/comments").json()["comments"][0]["id"]
    client.delete(f"/recipes/{menu['curry']['id']}/comments/{comment_id}")
    rate(client, menu["curry"]["id"], fan.id, 5)

    summary = {r["title"]: r for r in client.get("/recipe-overview").json()["data"]}["Green Curry"]
    assert (summary["averageRating"], summary["totalRatings"], summary["totalComments"]) == (5, 1, 0)


def test_crud_summaries_with_limit(db, menu):
    summaries = crud.get_recipe_summaries(db, sort_by="oldest", limit=2)
    assert [s.title for s in summaries] == ["Pasta Carbonara", "Margherita Pizza"]
    assert all(s.average_rating == 0.0 for s in summaries)


def test_home_page(client: TestClient, menu, make_user):
    fan = make_user()
    rate(client, menu["carbonara"]["id"], fan.id, 5)

    response = client.get("/home")
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert len(body["data"]["latestRecipes"]) == len(body["data"]["topRatedRecipes"]) == 4

    response = client.get("/home", params={"limit": 2})
    assert response.status_code == 200
    data = response.json()["data"]
    assert [r["title"] for r in data["latestRecipes"]] == ["Lasagne", "Green Curry"]
    assert data["topRatedRecipes"][0]["title"] == "Pasta Carbonara"
    assert data["topRatedRecipes"][0]["averageRating"] == 5
    assert len(data["topRatedRecipes"]) == 2
    assert data["latestRecipes"][0]["author"]["username"] == "chef"


def test_my_recipes(client: TestClient, menu, make_user, make_recipe):
    other = make_user()
    make_recipe(other.id, title="Other Pasta", cuisine="Italian")

    response = client.get("/myrecipes", params={"userId": str(menu["chef"].id), "search": "pasta", "sortBy": "oldest"})
    # Searches title and description only, so the Thai curry ("pasta-free") still matches
    assert titles(response) == ["Pasta Carbonara", "Green Curry", "Lasagne"]

    response = client.get("/myrecipes", params={"userId": str(other.id)})
    assert titles(response) == ["Other Pasta"]

    response = client.get("/myrecipes", params={"userId": str(menu["chef"].id), "search": "thai"})
    assert titles(response) == []

    assert client.get("/myrecipes", params={"userId": "me"}).status_code == 400
