from typing import Dict, List

from pydantic import BaseModel, Field, PrivateAttr, model_validator

from fleetcheck.errors import CounterResolutionError


class CounterMap(BaseModel):
    """
    Per-host translation table between the reference-language counter names
    and the host's localized ones.

    Both lists come from the host's Perflib registry and alternate numeric IDs
    and names. Position i in ``reference`` names the same metric as position i
    in ``localized``.
    """

    reference: List[str] = Field(..., description="Counter table in the reference language")
    localized: List[str] = Field(..., description="Counter table in the display language")

    _positions: Dict[str, int] = PrivateAttr(default_factory=dict)

    @model_validator(mode="after")
    def _build_index(self) -> "CounterMap":
        if len(self.reference) != len(self.localized):
            raise ValueError(
                f"counter tables differ in length: reference={len(self.reference)}, "
                f"localized={len(self.localized)}"
            )
        positions: Dict[str, int] = {}
        for index, value in enumerate(self.reference):
            # first occurrence wins, Perflib contains a few duplicate names
            positions.setdefault(value, index)
        self._positions = positions
        return self

    def translate(self, canonical_name: str) -> str:
        """Return the localized name for a reference-language counter name."""
        try:
            index = self._positions[canonical_name]
        except KeyError:
            raise CounterResolutionError(
                f"Counter name {canonical_name!r} not found in reference counter table"
            ) from None
        return self.localized[index]
