from .config import (
    AppInfo,
    ContactMethodEmail,
    ContactMethodEmailOrPhone,
    ContactMethodPhone,
    OverrideConfig,
    PasswordlessConfig,
)
from .interfaces import APIInterface, APIInterfaceWrapper, RecipeInterface, RecipeInterfaceWrapper
from .recipe import PasswordlessRecipe, get_recipe, install_recipe

__all__ = [
    "APIInterface",
    "APIInterfaceWrapper",
    "AppInfo",
    "ContactMethodEmail",
    "ContactMethodEmailOrPhone",
    "ContactMethodPhone",
    "OverrideConfig",
    "PasswordlessConfig",
    "PasswordlessRecipe",
    "RecipeInterface",
    "RecipeInterfaceWrapper",
    "get_recipe",
    "install_recipe",
]
