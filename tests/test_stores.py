"""
Supabase storage proxies against the in-memory client.
"""
import datetime as dt

import pytest

from kitchen_assistant.domain.schema import Ingredient, Provenance, RecipeIngredient, WeeklyPlan
from kitchen_assistant.errors import StorageError, ValidationError
from kitchen_assistant.stores.ingredients import IngredientStore
from kitchen_assistant.stores.profiles import ProfileStore
from kitchen_assistant.stores.recipes import PAGE_SIZE, RecipeStore
from kitchen_assistant.stores.weekly_plans import WeeklyPlanStore

from fakes import USER_ID, FakeAPIError, make_recipe, seed_ingredient, seed_recipe

WEEK = dt.date(2024, 6, 3)


# ---------------------------------------------------------------------------
# Ingredients
# ---------------------------------------------------------------------------
def test_ingredient_crud(fake_client):
    store = IngredientStore(fake_client, USER_ID)
    seed_ingredient(fake_client, "Garam", user_id="someone-else")

    saved = store.add(Ingredient(name="Tomat", quantity=3, unit="piece", category="vegetables",
                                 expiry_date=dt.date(2024, 6, 10)))
    assert saved.id
    assert fake_client.rows("ingredients")[-1]["expiry_date"] == "2024-06-10"

    updated = store.update(saved.id, {"quantity": 5})
    assert updated.quantity == 5

    assert [i.name for i in store.fetch()] == ["Tomat"]
    store.delete(saved.id)
    assert store.fetch() == []


def test_ingredient_failure_has_user_message(fake_client):
    fake_client.fail_tables["ingredients"] = FakeAPIError("JWT expired")

    with pytest.raises(StorageError) as err:
        IngredientStore(fake_client, USER_ID).fetch()
    assert err.value.user_message == "Could not load your ingredients."


def test_update_missing_ingredient_raises(fake_client):
    with pytest.raises(StorageError):
        IngredientStore(fake_client, USER_ID).update("nope", {"quantity": 1})


# ---------------------------------------------------------------------------
# Recipes
# ---------------------------------------------------------------------------
def test_recipe_add_attaches_line_items(fake_client):
    store = RecipeStore(fake_client, USER_ID)
    recipe = make_recipe("Soto Ayam", [("ayam", 300, "gram"), ("kunyit", 1, "ruas"), ("  ", 1, "x")])

    saved = store.add(recipe)

    assert saved.id != recipe.id
    assert saved.user_id == USER_ID
    assert [(i.name, i.quantity) for i in saved.ingredients] == [("ayam", 300.0), ("kunyit", 1.0)]
    assert store.recipes == [saved]


def test_recipe_update_replaces_line_items(fake_client):
    store = RecipeStore(fake_client, USER_ID)
    rid = seed_recipe(fake_client, "Soto", [("ayam", 300, "gram"), ("kunyit", 1, "ruas")])

    updated = store.update(rid, {"name": "Soto Kuning"}, ingredients=[RecipeIngredient("ayam", 500, "gram")])

    assert updated.name == "Soto Kuning"
    assert [(i.name, i.quantity) for i in updated.ingredients] == [("ayam", 500.0)]
    assert len(fake_client.rows("recipe_ingredients")) == 1


def test_recipe_delete_removes_line_items(fake_client):
    store = RecipeStore(fake_client, USER_ID)
    rid = seed_recipe(fake_client, "Soto", [("ayam", 300, "gram")])

    store.delete(rid)

    assert fake_client.rows("recipes") == []
    assert fake_client.rows("recipe_ingredients") == []


def test_recipe_pagination(fake_client):
    for i in range(PAGE_SIZE + 1):
        seed_recipe(fake_client, f"Resep {i}")
    store = RecipeStore(fake_client, USER_ID)

    first = store.fetch(0)
    assert len(first) == PAGE_SIZE
    assert first[0].name == f"Resep {PAGE_SIZE}"
    assert store.has_more

    second = store.fetch(1)
    assert [r.name for r in second] == ["Resep 0"]
    assert not store.has_more
    assert len(store.recipes) == PAGE_SIZE + 1


def test_save_external_creates_owned_copy(fake_client):
    store = RecipeStore(fake_client, USER_ID)
    external = make_recipe("Rendang", [("daging", 1, "kg")], provenance=Provenance.DATASET, recipe_id="ds-9")

    saved = store.save_external(external)

    assert saved.provenance is Provenance.OWNED
    assert saved.id not in (None, "ds-9")
    assert "dataset" in saved.tags
    assert external.provenance is Provenance.DATASET
    assert external.tags == []
    assert store.save_external(saved) is saved


# ---------------------------------------------------------------------------
# Weekly plans
# ---------------------------------------------------------------------------
def test_saving_a_week_replaces_previous_plan(fake_client):
    recipes = RecipeStore(fake_client, USER_ID)
    owned = recipes.add(make_recipe("Ayam Goreng", [("ayam", 300, "gram")]))
    external = make_recipe("Telur Dadar", provenance=Provenance.AI_GENERATED, recipe_id="ai-1")
    store = WeeklyPlanStore(fake_client, USER_ID, recipes)

    plan = WeeklyPlan(user_id=USER_ID, week_start=WEEK)
    plan.days[0].slots[0] = owned
    plan.days[0].slots[1] = external
    first = store.save(plan)
    second = store.save(plan)

    assert first.id != second.id
    assert [r["id"] for r in fake_client.rows("weekly_plans")] == [second.id]
    assert len(fake_client.rows("daily_meals")) == 7
    monday = [r for r in fake_client.rows("daily_meals") if r["date"] == "2024-06-03"][0]
    assert monday["breakfast_recipe_id"] == owned.id
    assert monday["lunch_recipe_id"] is None

    loaded = store.load(second.id)
    assert loaded.days[0].slots[0].name == "Ayam Goreng"
    assert loaded.days[0].slots[1] is None
    assert loaded.populated == 1


def test_current_week_plan_and_delete(fake_client):
    recipes = RecipeStore(fake_client, USER_ID)
    store = WeeklyPlanStore(fake_client, USER_ID, recipes)
    saved = store.save(WeeklyPlan(user_id=USER_ID, week_start=WEEK))

    assert store.current_week_plan(today=dt.date(2024, 6, 8)).id == saved.id
    assert store.current_week_plan(today=dt.date(2024, 6, 10)) is None
    assert [p.id for p in store.fetch_all()] == [saved.id]

    store.delete(saved.id)
    assert store.fetch_all() == []
    assert fake_client.rows("daily_meals") == []


# ---------------------------------------------------------------------------
# Profiles and feedback
# ---------------------------------------------------------------------------
def test_profile_get_or_create(fake_client):
    store = ProfileStore(fake_client, USER_ID)

    created = store.get_or_create()
    again = store.get_or_create()

    assert created.user_id == USER_ID
    assert again.id == created.id
    assert len(fake_client.rows("user_profiles")) == 1


def test_duplicate_username_is_a_validation_error(fake_client):
    store = ProfileStore(fake_client, USER_ID)
    store.get_or_create()
    fake_client.fail_ops[("user_profiles", "update")] = FakeAPIError(
        'duplicate key value violates unique constraint "user_profiles_username_key"', code="23505"
    )

    with pytest.raises(ValidationError) as err:
        store.update_username("chef")
    assert err.value.user_message == "Username already taken. Please choose another one."


def test_other_profile_errors_stay_storage_errors(fake_client):
    store = ProfileStore(fake_client, USER_ID)
    fake_client.fail_ops[("user_profiles", "update")] = FakeAPIError("permission denied", code="42501")

    with pytest.raises(StorageError):
        store.update_username("chef")


def test_update_profile_names(fake_client):
    store = ProfileStore(fake_client, USER_ID)
    store.get_or_create()

    assert store.update_username("  chef ").username == "chef"
    profile = store.update_full_name("Siti Aminah")
    assert profile.display_name == "chef"
    assert profile.full_name == "Siti Aminah"


def test_feedback(fake_client):
    store = ProfileStore(fake_client, USER_ID)

    with pytest.raises(ValidationError):
        store.submit_feedback("   ")
    store.submit_feedback(" Great planner ", email=" a@b.c ")

    row = fake_client.rows("user_feedback")[0]
    assert row["feedback_text"] == "Great planner"
    assert row["user_email"] == "a@b.c"
