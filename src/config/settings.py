"""
Application settings and configuration

Uses pydantic-settings for type-safe configuration via environment variables.
All settings use ANNOTEXT_ prefix (e.g., ANNOTEXT_PLACEHOLDER_PREFIX=Dummy).

Settings can also be loaded from a .env file in the project root.
"""

from typing import Any

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    """
    Application configuration via environment variables.

    Environment variables use ANNOTEXT_ prefix.

    Examples:
        ANNOTEXT_PLACEHOLDER_PREFIX=Dummy
        ANNOTEXT_TERM_TERMINATOR=.
        ANNOTEXT_DEBUG_MODE=true
    """

    model_config = SettingsConfigDict(
        env_prefix="ANNOTEXT_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Placeholder configuration
    placeholder_prefix: str = Field(
        default="Dummy",
        description="Prefix of numbered placeholder tokens (Dummy0, Dummy1, ...)",
    )

    placeholder_plural: str = Field(
        default="Dummies",
        description="Token emitted for plural placeholders",
    )

    placeholder_vowel_prefix: str = Field(
        default="Ina",
        description="Prefix of numbered placeholders starting with a vowel (Ina0, Ina1, ...)",
    )

    # Dialect configuration
    term_terminator: str = Field(
        default=".",
        description="Appended after each definition-list term so it reads as a full sentence",
    )

    cell_separator: str = Field(
        default=" ",
        description="Joins the texts of adjacent table cells",
    )

    # Diagnostics
    debug_mode: bool = Field(
        default=False,
        description="Enable debug output during conversion",
    )

    def placeHolder_make(self, index: int, action: Any = None) -> str:
        """
        Generate the placeholder token for the index-th placeholder.

        Args:
            index: Zero-based occurrence number within one conversion
            action: Placeholder Action (PLACEHOLDER, PLURAL_PLACEHOLDER or
                    VOWEL_PLACEHOLDER); None means PLACEHOLDER

        Returns:
            Placeholder token (e.g., "Dummy0")

        Example:
            >>> settings = AppSettings()
            >>> settings.placeHolder_make(0)
            'Dummy0'
        """
        variant = getattr(action, "value", action)
        if variant == "pluralDummy":
            return self.placeholder_plural
        if variant == "vowelDummy":
            return f"{self.placeholder_vowel_prefix}{index}"
        return f"{self.placeholder_prefix}{index}"

    def placeHolderIndex_extract(self, token: str) -> int | None:
        """
        Extract the occurrence number from a numbered placeholder token.

        Args:
            token: Token to parse

        Returns:
            Index if token is a numbered placeholder, None otherwise

        Example:
            >>> settings = AppSettings()
            >>> settings.placeHolderIndex_extract('Dummy3')
            3
        """
        for prefix in (self.placeholder_prefix, self.placeholder_vowel_prefix):
            if not token.startswith(prefix):
                continue
            try:
                return int(token[len(prefix):])
            except ValueError:
                continue
        return None


# Singleton instance - import this in your code
appsettings = AppSettings()
