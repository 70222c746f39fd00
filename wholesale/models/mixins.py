from sqlalchemy import Column, String


class AddressMixin:
    """Postal address stored inline as address_* columns."""

    address_street   = Column(String(200))
    address_city     = Column(String(100))
    address_state    = Column(String(100))
    address_zip_code = Column(String(20))
    address_country  = Column(String(100))

    _ADDRESS_FIELDS = ("street", "city", "state", "zip_code", "country")

    @property
    def address(self):
        values = {f: getattr(self, f"address_{f}") for f in self._ADDRESS_FIELDS}
        return values if any(v is not None for v in values.values()) else None

    @address.setter
    def address(self, value):
        value = value or {}
        for f in self._ADDRESS_FIELDS:
            setattr(self, f"address_{f}", value.get(f))


def in_list(column: str, values) -> str:
    """SQL text for a CHECK constraint limiting `column` to `values`."""
    return f"{column} IN ({', '.join(repr(v) for v in values)})"
