"""Client for the external plan-text generator.

The generator answers with a preset group skeleton (presets and their planned
sets) as JSON. The answer goes through the same schema and store path as a
hand-authored template, so a broken answer never reaches the database.
"""
import logging
from typing import Any

import httpx
from sqlalchemy.orm import Session

from ..core.config import get_settings
from ..core.exceptions import PersistenceError, ValidationError
from ..core.security import Principal
from ..models.plan import PresetGroup
from ..schemas.plan import PlanGenerationRequest, PresetGroupCreate
from .plan_store import create_preset_group, parse_payload

logger = logging.getLogger(__name__)


def request_plan(request: PlanGenerationRequest) -> dict[str, Any]:
    settings = get_settings()
    if not settings.plan_generator_url:
        raise PersistenceError("Plan generator is not configured.")
    headers = {}
    if settings.plan_generator_api_key:
        headers["Authorization"] = f"Bearer {settings.plan_generator_api_key}"
    body = {
        "training_goals": request.training_goals,
        "session_mode": request.session_mode.value,
        "exercise_ids": request.exercise_ids,
    }
    try:
        with httpx.Client(timeout=settings.plan_generator_timeout) as client:
            response = client.post(settings.plan_generator_url, json=body, headers=headers)
            response.raise_for_status()
            data = response.json()
    except (httpx.HTTPStatusError, httpx.RequestError, ValueError) as exc:
        logger.error("Plan generator call failed: %s", exc)
        raise PersistenceError("Plan generator request failed.") from exc
    if not isinstance(data, dict):
        raise ValidationError("Plan generator returned an unexpected payload.", field="preset_group")
    return data


def generate_preset_group(
    db: Session, principal: Principal, request: PlanGenerationRequest
) -> PresetGroup:
    data = request_plan(request)
    skeleton = data.get("preset_group", data)
    if not isinstance(skeleton, dict):
        raise ValidationError("Plan generator returned an unexpected payload.", field="preset_group")

    overrides = request.model_dump(
        include={"name", "date", "microcycle_id", "session_mode", "athlete_group_id"},
        exclude_none=True,
    )
    payload = parse_payload(PresetGroupCreate, {**skeleton, **overrides})
    group = create_preset_group(db, principal, payload)
    logger.info(
        "Generated preset group %s with %d presets for coach %s",
        group.id,
        len(payload.presets),
        principal.coach_id,
    )
    return group
