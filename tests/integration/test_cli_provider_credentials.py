"""Integration tests for the secure credential CLI flows."""

from __future__ import annotations

from typer.testing import CliRunner

from nodetocode.cli import app


def test_credentials_set_api_key_prompts_hidden_and_stores(
    credential_storage: dict[str, str],
) -> None:
    """`--set-api-key` should prompt with hidden input and persist the key."""

    result = CliRunner().invoke(
        app,
        ["credentials", "--provider", "deepseek", "--set-api-key"],
        input="  ds-secret  \n",
    )

    assert result.exit_code == 0, result.output
    assert "ds-secret" not in result.output
    assert "API key stored in secure credential storage." in result.output
    assert credential_storage == {"deepseek": "ds-secret"}


def test_credentials_set_api_key_rejects_blank_input(
    credential_storage: dict[str, str],
) -> None:
    """A blank prompt answer should fail without storing anything."""

    result = CliRunner().invoke(app, ["credentials", "--set-api-key"], input="   \n")

    assert result.exit_code == 1
    assert "No API key entered." in result.output
    assert credential_storage == {}


def test_credentials_status_and_clear(credential_storage: dict[str, str]) -> None:
    """Status should report stored keys and clear should remove them."""

    credential_storage["openai"] = "oa-key"
    runner = CliRunner()

    status = runner.invoke(app, ["credentials"])
    cleared = runner.invoke(app, ["credentials", "--clear-api-key"])
    cleared_again = runner.invoke(app, ["credentials", "--clear-api-key"])
    status_after = runner.invoke(app, ["credentials"])

    assert "Secure credential storage: available" in status.output
    assert "Stored openai API key: present" in status.output
    assert "oa-key" not in status.output
    assert "Stored API key cleared from secure credential storage." in cleared.output
    assert "No stored API key found in secure credential storage." in cleared_again.output
    assert "Stored openai API key: not set" in status_after.output


def test_credentials_rejects_conflicting_flags_and_unknown_provider() -> None:
    """Conflicting actions and unsupported providers should fail with stage errors."""

    runner = CliRunner()
    conflicting = runner.invoke(app, ["credentials", "--set-api-key", "--clear-api-key"])
    unknown = runner.invoke(app, ["credentials", "--provider", "anthropic"])

    assert conflicting.exit_code == 1
    assert "cannot be used together" in conflicting.output
    assert unknown.exit_code == 1
    assert "Unsupported provider `anthropic`" in unknown.output
