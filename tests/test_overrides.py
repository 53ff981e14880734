import pytest
from fastapi import FastAPI
from starlette.requests import Request

from passwordless_engine.core.exceptions import (
    RecipeAlreadyInitialisedError,
    RecipeNotInitialisedError,
)
from passwordless_engine.recipe import (
    APIInterfaceWrapper,
    OverrideConfig,
    RecipeInterfaceWrapper,
    get_recipe,
    install_recipe,
)
from passwordless_engine.schemas.passwordless import GeneralErrorResponse

BASE = "/auth"


async def test_function_overrides_apply_in_order(make_recipe):
    applied = []

    def first(original):
        applied.append("first")
        return RecipeInterfaceWrapper(original)

    def second(original):
        applied.append("second")
        assert isinstance(original, RecipeInterfaceWrapper)
        return RecipeInterfaceWrapper(original)

    recipe = make_recipe(override=OverrideConfig(functions=[first, second]))

    assert applied == ["first", "second"]
    assert isinstance(recipe.recipe_implementation.original, RecipeInterfaceWrapper)


async def test_function_override_sees_core_calls(make_recipe):
    seen = []

    class AuditingRecipe(RecipeInterfaceWrapper):
        async def create_code(self, email, phone_number, user_input_code, user_context):
            seen.append(email)
            return await super().create_code(email, phone_number, user_input_code, user_context)

    recipe = make_recipe(override=OverrideConfig(functions=[AuditingRecipe]))
    await recipe.create_code_with_email("johndoe@gmail.com")

    assert seen == ["johndoe@gmail.com"]


async def test_api_override_replaces_endpoint_behaviour(make_recipe, make_client, outbox):
    class BlockDomain(APIInterfaceWrapper):
        async def create_code_post(self, email, phone_number, options, user_context):
            if email is not None and email.endswith("@blocked.com"):
                return GeneralErrorResponse(message="Sign ups from this domain are disabled")
            return await super().create_code_post(email, phone_number, options, user_context)

    recipe = make_recipe(override=OverrideConfig(apis=[BlockDomain]))
    async with make_client(recipe) as client:
        blocked = await client.post(f"{BASE}/signinup/code", json={"email": "a@blocked.com"})
        allowed = await client.post(f"{BASE}/signinup/code", json={"email": "a@gmail.com"})

    assert blocked.json() == {
        "status": "GENERAL_ERROR",
        "message": "Sign ups from this domain are disabled",
    }
    assert allowed.json()["status"] == "OK"
    assert [m["to"] for m in outbox.emails] == ["a@gmail.com"]


async def test_user_context_is_shared_along_the_chain(make_recipe, make_client):
    seen = []

    class TagContext(APIInterfaceWrapper):
        async def email_exists_get(self, email, options, user_context):
            user_context["tag"] = "api"
            return await super().email_exists_get(email, options, user_context)

    class ReadContext(RecipeInterfaceWrapper):
        async def get_user_by_email(self, email, user_context):
            seen.append(user_context.get("tag"))
            return await super().get_user_by_email(email, user_context)

    recipe = make_recipe(override=OverrideConfig(functions=[ReadContext], apis=[TagContext]))
    async with make_client(recipe) as client:
        await client.get(f"{BASE}/signup/email/exists", params={"email": "a@gmail.com"})

    assert seen == ["api"]


async def test_disabled_endpoint_is_not_found(make_recipe, make_client, fake_core):
    class NoSignUpCheck(APIInterfaceWrapper):
        disable_email_exists_get = True

    class Passthrough(APIInterfaceWrapper):
        pass

    recipe = make_recipe(override=OverrideConfig(apis=[NoSignUpCheck, Passthrough]))
    async with make_client(recipe) as client:
        disabled = await client.get(f"{BASE}/signup/email/exists", params={"email": "a@gmail.com"})
        enabled = await client.get(
            f"{BASE}/signup/phonenumber/exists", params={"phoneNumber": "+442083661177"}
        )

    assert disabled.status_code == 404
    assert disabled.json() == {"message": "Not Found"}
    assert enabled.status_code == 200
    assert not any(r.url.params.get("email") for r in fake_core.requests)


@pytest.mark.parametrize(
    ("flag", "method", "path"),
    [
        ("disable_create_code_post", "post", "/signinup/code"),
        ("disable_resend_code_post", "post", "/signinup/code/resend"),
        ("disable_consume_code_post", "post", "/signinup/code/consume"),
        ("disable_phone_number_exists_get", "get", "/signup/phonenumber/exists"),
    ],
)
async def test_every_endpoint_can_be_disabled(make_recipe, make_client, flag, method, path):
    disabled = type("Disabled", (APIInterfaceWrapper,), {flag: True})
    recipe = make_recipe(override=OverrideConfig(apis=[disabled]))

    async with make_client(recipe) as client:
        if method == "post":
            response = await client.post(f"{BASE}{path}", json={})
        else:
            response = await client.get(f"{BASE}{path}")

    assert response.status_code == 404


async def test_recipe_can_only_be_installed_once(make_recipe):
    app = FastAPI()
    recipe = make_recipe()
    install_recipe(app, recipe)

    with pytest.raises(RecipeAlreadyInitialisedError) as excinfo:
        install_recipe(app, make_recipe())

    assert excinfo.value.message == (
        "passwordless recipe has already been initialised. Please check your code for bugs"
    )
    assert app.state.passwordless_recipe is recipe


def test_routes_without_recipe_fail():
    request = Request({"type": "http", "app": FastAPI(), "headers": []})
    with pytest.raises(RecipeNotInitialisedError):
        get_recipe(request)
