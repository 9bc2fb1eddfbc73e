"""Gender code mapping between canonical values and node-local codes.

Each node owns a static table ``{canonical: local_code}``. Outbound values are
looked up directly; inbound local codes are looked up in the reversed table.
Anything the table does not know maps to "unknown".
"""

from typing import Any, Mapping

from hie_interop.models.patient import CanonicalGender


class GenderMapping:
    """Bidirectional canonical <-> local gender table for one node.

    Example:
        >>> mapping = GenderMapping({"male": "1", "female": "0", "other": "9", "unknown": "8"})
        >>> mapping.to_local("female")
        '0'
        >>> mapping.to_canonical("1")
        'male'
        >>> mapping.to_canonical("X")
        'unknown'
    """

    def __init__(self, table: Mapping[str, Any]) -> None:
        self._to_local = {str(canon): str(code) for canon, code in table.items()}
        self._to_canonical = {code: canon for canon, code in self._to_local.items()}

    @property
    def unknown_code(self) -> str:
        """Local code for "unknown" (falls back to the literal "unknown")."""
        return self._to_local.get(CanonicalGender.UNKNOWN.value, CanonicalGender.UNKNOWN.value)

    def to_local(self, canonical: Any) -> str:
        """Map a canonical gender to this node's local code.

        Unrecognised canonical values use the table's "unknown" code.
        """
        if canonical is not None and str(canonical) in self._to_local:
            return self._to_local[str(canonical)]
        return self.unknown_code

    def to_canonical(self, local_code: Any) -> str:
        """Map a local code to the canonical gender ("unknown" if not in the table)."""
        if local_code is None:
            return CanonicalGender.UNKNOWN.value
        return self._to_canonical.get(str(local_code), CanonicalGender.UNKNOWN.value)

    def as_dict(self) -> dict[str, str]:
        return dict(self._to_local)
