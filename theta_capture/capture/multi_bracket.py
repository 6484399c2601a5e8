"""Multi-bracket capture: several exposures of one scene in a single run."""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

from theta_capture.core.errors import CaptureConfigError

from .builder import CaptureBuilder
from .options import BracketSetting, ShootingMethod, ThetaModel
from .session import CaptureKind, CaptureSession, CompletionStrategy, ResultShape

MULTI_BRACKET = CaptureKind(
    name="multi-bracket",
    event_prefix="MULTI-BRACKET",
    strategy=CompletionStrategy.NOTIFY,
    result_shape=ResultShape.MULTIPLE,
)

AUTO_BRACKET_KEY = "_autoBracket"
MIN_BRACKETS = 2
MAX_BRACKETS = 13


class MultiBracketCapture(CaptureSession):
    """Session resolving to the list of bracket file URLs."""

    @property
    def bracket_settings(self) -> List[Dict[str, Any]]:
        auto_bracket = self.options.get(AUTO_BRACKET_KEY) or {}
        return list(auto_bracket.get("_bracketParameters", []))


class MultiBracketCaptureBuilder(CaptureBuilder):
    kind = MULTI_BRACKET
    session_class = MultiBracketCapture

    def set_bracket_settings(self, settings: Sequence[BracketSetting]) -> "MultiBracketCaptureBuilder":
        if not MIN_BRACKETS <= len(settings) <= MAX_BRACKETS:
            raise CaptureConfigError(
                f"multi-bracket needs {MIN_BRACKETS} to {MAX_BRACKETS} settings, got {len(settings)}"
            )
        parameters = [setting.to_options() for setting in settings]
        self.options[AUTO_BRACKET_KEY] = {
            "_bracketNumber": len(parameters),
            "_bracketParameters": parameters,
        }
        return self

    def _prepare_options(self) -> Dict[str, Any]:
        if AUTO_BRACKET_KEY not in self.options:
            raise CaptureConfigError("bracket settings must be set before build()")
        options = super()._prepare_options()
        if self.camera_model is ThetaModel.THETA_X:
            options["_shootingMethod"] = ShootingMethod.BRACKET.value
        return options

    def _start_params(self) -> Optional[Dict[str, Any]]:
        if self.camera_model is ThetaModel.THETA_X:
            return None
        return {"_mode": ShootingMethod.BRACKET.value}


__all__ = [
    "AUTO_BRACKET_KEY",
    "MULTI_BRACKET",
    "MultiBracketCapture",
    "MultiBracketCaptureBuilder",
]
