async def test_health(client):
    response = await client.get("/api/v1/health/")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


async def test_lookup_crud(client):
    response = await client.post("/api/v1/classifications/", json={"name": "Thai"})
    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    assert body["meta"]["api_version"] == "v1"
    classification_id = body["data"]["id"]

    response = await client.put(
        f"/api/v1/classifications/{classification_id}", json={"description": "Spicy"}
    )
    assert response.json()["data"]["description"] == "Spicy"
    assert response.json()["data"]["name"] == "Thai"

    response = await client.get("/api/v1/classifications/")
    assert [item["name"] for item in response.json()["data"]] == ["Thai"]

    response = await client.delete(f"/api/v1/classifications/{classification_id}")
    assert response.status_code == 200
    response = await client.get(f"/api/v1/classifications/{classification_id}")
    assert response.status_code == 404


async def test_lookup_in_use_cannot_be_deleted(client, sample_recipe, sample_classification):
    response = await client.delete(f"/api/v1/classifications/{sample_classification.id}")

    assert response.status_code == 400
    assert "being used by 1 recipe(s)" in response.json()["detail"]


async def test_recipe_routes(client, sample_user, sample_meal):
    response = await client.post(
        "/api/v1/recipes/",
        json={
            "user_id": sample_user.id,
            "name": "Ramen",
            "ingredients": "noodles, broth",
            "instructions": "Simmer.",
            "tags": ["soup"],
            "meal_ids": [sample_meal.id],
        },
    )
    assert response.status_code == 201
    recipe = response.json()["data"]
    assert recipe["meal_ids"] == [sample_meal.id]
    assert recipe["tags"] == ["soup"]

    response = await client.get("/api/v1/recipes/", params={"tags": "soup,stew"})
    assert [r["id"] for r in response.json()["data"]] == [recipe["id"]]

    response = await client.get("/api/v1/recipes/search", params={"q": "test user"})
    assert [r["id"] for r in response.json()["data"]] == [recipe["id"]]

    response = await client.put(f"/api/v1/recipes/{recipe['id']}", json={"is_private": True})
    assert response.json()["data"]["is_private"] is True

    response = await client.get("/api/v1/recipes/public")
    assert response.json()["data"] == []

    response = await client.delete(f"/api/v1/recipes/{recipe['id']}")
    assert response.status_code == 200
    response = await client.get(f"/api/v1/recipes/{recipe['id']}")
    assert response.status_code == 404


async def test_create_recipe_with_unknown_user(client):
    response = await client.post(
        "/api/v1/recipes/",
        json={"user_id": "nobody", "name": "X", "ingredients": "y", "instructions": "z"},
    )

    assert response.status_code == 400
    assert response.json()["detail"] == "One or more users not found"


async def test_cookbook_recipe_ordering_routes(client, cookbook_with_recipes, make_recipes):
    cookbook, (first, second, third) = cookbook_with_recipes
    extra = await make_recipes(1)
    base = f"/api/v1/cookbooks/{cookbook.id}/recipes"

    response = await client.post(base, json={"recipe_ids": [first.id, extra[0].id]})
    assert response.status_code == 200
    body = response.json()
    assert body["meta"]["added_count"] == 1
    assert body["meta"]["skipped_count"] == 1
    assert body["data"]["recipe_ids"][-1] == {"recipe_id": extra[0].id, "order": 4}

    response = await client.delete(f"{base}/{second.id}")
    assert response.status_code == 200
    assert [entry["order"] for entry in response.json()["data"]["recipe_ids"]] == [1, 2, 3]

    response = await client.put(base, json={"recipe_order": {extra[0].id: 1}})
    assert [entry["recipe_id"] for entry in response.json()["data"]["recipe_ids"]] == [
        first.id,
        extra[0].id,
        third.id,
    ]

    response = await client.delete(f"{base}/{second.id}")
    assert response.status_code == 404

    response = await client.put(base, json={"recipe_order": {"missing": 1}})
    assert response.status_code == 400


async def test_user_with_content_cannot_be_deleted(client, sample_recipe, sample_user):
    response = await client.delete(f"/api/v1/users/{sample_user.id}")

    assert response.status_code == 400
    assert "1 recipe(s)" in response.json()["detail"]


async def test_duplicate_user_email(client, sample_user):
    response = await client.post("/api/v1/users/", json={"name": "Again", "email": sample_user.email})

    assert response.status_code == 400


async def test_admin_stats(client, sample_recipe):
    response = await client.get("/api/v1/admin/stats")

    data = response.json()["data"]
    assert data["overview"]["total_recipes"] == 1
    assert data["overview"]["total_users"] == 1
    assert data["privacy"]["public_recipes"] == 1
    assert data["recent_activity"]["new_recipes_30d"] == 1
