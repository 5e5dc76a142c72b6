# SPDX-License-Identifier: MIT
# Copyright (c) 2025 azurekv contributors

"""Pre-apply prediction of which computed attributes will change.

``modify_plan`` works from the prior state and the proposed configuration
alone and never contacts the vault.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .logger import Logger
from .models import UNKNOWN, SecretConfig, SecretRecord

# Attributes that change whenever a new version is minted
VERSIONED_ATTRIBUTES = ("id", "resource_id", "version")
# Attributes stable for the lifetime of the secret
VERSIONLESS_ATTRIBUTES = ("versionless_id", "resource_versionless_id")


class PlanAction(str, Enum):
    """What applying the plan will do to the secret."""
    CREATE = "create"
    DESTROY = "destroy"
    IGNORED = "ignored"
    ROTATE = "rotate"
    UPDATE_METADATA = "update_metadata"


@dataclass
class PlanDecision:
    """Outcome of plan reconciliation.

    Attributes:
        action: Predicted effect of the apply step
        planned: Planned values of computed attributes; ``UNKNOWN`` marks
            values only the vault can supply. Empty for create/destroy.
        reason: Human-readable explanation, also logged
    """
    action: PlanAction
    planned: dict[str, Any] = field(default_factory=dict)
    reason: str = ""

    @property
    def rotates(self) -> bool:
        return self.action in (PlanAction.CREATE, PlanAction.ROTATE)

    def is_unknown(self, attribute: str) -> bool:
        return self.planned.get(attribute) is UNKNOWN


def modify_plan(
    prior_state: SecretRecord | None,
    config: SecretConfig | None,
    logger: Logger | None = None,
) -> PlanDecision:
    """Predict the computed attributes of a secret before apply.

    Args:
        prior_state: Recorded state, or None when the secret is being created
        config: Proposed configuration, or None when the secret is being destroyed
        logger: Optional logger receiving the decision at DEBUG

    Returns:
        PlanDecision describing the predicted change
    """
    if config is None:
        return PlanDecision(PlanAction.DESTROY, reason="the secret will be deleted")
    if prior_state is None:
        return PlanDecision(PlanAction.CREATE, reason="the secret will be created")

    if config.value_wo is None or config.value_wo_version is None:
        decision = PlanDecision(
            PlanAction.IGNORED,
            planned=_from_state(prior_state),
            reason=(
                "The secret value will not be updated because the change of value_wo "
                "or value_wo_version seems to be ignored by the lifecycle"
            ),
        )
    elif config.value_wo is UNKNOWN:
        decision = _rotation(prior_state, "The secret value will be updated because the value is unknown")
    elif config.value_wo_version != prior_state.value_wo_version:
        decision = _rotation(prior_state, "The secret value will be updated because the value_wo_version changes")
    else:
        decision = PlanDecision(
            PlanAction.UPDATE_METADATA,
            planned=_from_state(prior_state),
            reason="The secret value will not be updated because the value_wo_version is unchanged",
        )

    if logger is not None:
        logger.debug(decision.reason, resource_id=prior_state.id, action=decision.action.value)
    return decision


def _from_state(prior_state: SecretRecord) -> dict[str, Any]:
    return {attr: getattr(prior_state, attr) for attr in VERSIONED_ATTRIBUTES + VERSIONLESS_ATTRIBUTES}


def _rotation(prior_state: SecretRecord, reason: str) -> PlanDecision:
    planned = _from_state(prior_state)
    for attr in VERSIONED_ATTRIBUTES:
        planned[attr] = UNKNOWN
    return PlanDecision(PlanAction.ROTATE, planned=planned, reason=reason)
