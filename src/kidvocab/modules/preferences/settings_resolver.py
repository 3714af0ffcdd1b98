"""
Settings Resolver

Merges the partial settings stored on an account over the defaults. Each
field is validated on its own, so one bad value only resets that field.
"""

import json
import logging
from typing import Any, List, Mapping, Optional

from pydantic import ValidationError

from kidvocab.core.exceptions import NotFoundError
from kidvocab.core.signals import InvalidationBus, get_invalidation_bus
from kidvocab.modules.learners.db_operations import AccountDBOperations, get_account_db_operations
from kidvocab.modules.progress.models import QuestionType

from .models import AppSettings, QuestionTypeSettings

logger = logging.getLogger(__name__)

QUESTION_TYPES_KEY = "questionTypes"


def default_settings() -> AppSettings:
    return AppSettings()


def _field_aliases(model) -> List[str]:
    return [field.alias or name for name, field in model.model_fields.items()]


def merge_settings(base: AppSettings, overrides: Any) -> AppSettings:
    """Apply ``overrides`` (JSON-shaped, camelCase keys) on top of ``base``.

    Top-level keys replace the base value; ``questionTypes`` is merged key by
    key. Unknown keys are ignored and invalid values keep the base value.
    """
    if not isinstance(overrides, Mapping):
        if overrides is not None:
            logger.warning(f"Ignoring settings override of type {type(overrides).__name__}")
        return base

    merged = base.to_json_dict()

    for alias in _field_aliases(AppSettings):
        if alias not in overrides or overrides[alias] is None:
            continue
        value = overrides[alias]

        if alias == QUESTION_TYPES_KEY:
            if not isinstance(value, Mapping):
                logger.warning(f"Ignoring invalid {QUESTION_TYPES_KEY}: {value!r}")
                continue
            question_types = dict(merged[QUESTION_TYPES_KEY])
            for key in _field_aliases(QuestionTypeSettings):
                if key not in value or value[key] is None:
                    continue
                candidate = {**question_types, key: value[key]}
                try:
                    QuestionTypeSettings.model_validate(candidate)
                except ValidationError:
                    logger.warning(f"Ignoring invalid {QUESTION_TYPES_KEY}.{key}: {value[key]!r}")
                    continue
                question_types = candidate
            merged[QUESTION_TYPES_KEY] = question_types
            continue

        candidate = {**merged, alias: value}
        try:
            AppSettings.model_validate(candidate)
        except ValidationError:
            logger.warning(f"Ignoring invalid setting {alias}: {value!r}")
            continue
        merged = candidate

    return AppSettings.model_validate(merged)


def parse_settings_json(settings_json: Optional[str]) -> AppSettings:
    """Resolve a stored blob; unreadable JSON yields the defaults."""
    try:
        stored = json.loads(settings_json or "{}")
    except json.JSONDecodeError as e:
        logger.warning(f"Stored settings are not valid JSON, using defaults: {e}")
        return default_settings()
    return merge_settings(default_settings(), stored)


def enabled_question_types(settings: AppSettings) -> List[QuestionType]:
    """Question types switched on, English-to-translation when none are."""
    toggles = settings.question_types
    enabled = []
    if toggles.en_to_he:
        enabled.append(QuestionType.EN_TO_TARGET)
    if toggles.he_to_en:
        enabled.append(QuestionType.TARGET_TO_EN)
    if toggles.audio_to_en:
        enabled.append(QuestionType.AUDIO_TO_EN)
    return enabled or [QuestionType.EN_TO_TARGET]


class SettingsResolver:
    def __init__(
        self,
        db_ops: Optional[AccountDBOperations] = None,
        bus: Optional[InvalidationBus] = None,
    ):
        self.db_ops = db_ops or get_account_db_operations()
        self.bus = bus or get_invalidation_bus()

    async def get_app_settings(self, account_id: Optional[str]) -> AppSettings:
        """Resolved settings for an account; defaults when there is no account."""
        if not account_id:
            return default_settings()
        account = await self.db_ops.get_account(account_id)
        if account is None:
            return default_settings()
        return parse_settings_json(account.settings_json)

    async def update_app_settings(self, account_id: str, changes: Mapping[str, Any]) -> AppSettings:
        account = await self.db_ops.get_account(account_id)
        if account is None:
            raise NotFoundError("Parent account not found")

        current = parse_settings_json(account.settings_json)
        updated = merge_settings(current, changes)
        await self.db_ops.update_settings_json(account_id, json.dumps(updated.to_json_dict()))
        logger.info("Updated settings for account %s", account_id)
        self.bus.invalidate("/parent")
        return updated


# Singleton instance
_settings_resolver = None


def get_settings_resolver() -> SettingsResolver:
    global _settings_resolver
    if _settings_resolver is None:
        _settings_resolver = SettingsResolver()
    return _settings_resolver
