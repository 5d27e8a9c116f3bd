"""
analysis/exceptions.py - Fehlerklassen der Report-Engine.
"""


class ReportError(Exception):
    """Basisklasse für alle Fehler der Report-Berechnung."""


class SchemaValidationError(ReportError):
    """Eingabetabelle fehlt oder ihr fehlen Pflichtspalten."""

    def __init__(self, table: str, missing_columns: list):
        self.table = table
        self.missing_columns = list(missing_columns)
        super().__init__(
            f"Tabelle '{table}': Pflichtspalten fehlen: {self.missing_columns}"
        )


def _sorted_ids(ids) -> list:
    # Gemischte Typen (z.B. 'x' und 99) sind nicht vergleichbar
    try:
        return sorted(ids)
    except TypeError:
        return sorted(ids, key=repr)


class ReferentialIntegrityError(ReportError):
    """
    Bestellposition verweist auf eine nicht existierende Bestellung oder
    ein nicht existierendes Produkt.

    Stilles Weglassen solcher Zeilen würde Summen verfälschen, deshalb
    bricht der betroffene Report ab.
    """

    def __init__(self, missing_order_ids=(), missing_product_ids=()):
        self.missing_order_ids = _sorted_ids(missing_order_ids)
        self.missing_product_ids = _sorted_ids(missing_product_ids)
        parts = []
        if self.missing_order_ids:
            parts.append(f"unbekannte order_id: {self.missing_order_ids}")
        if self.missing_product_ids:
            parts.append(f"unbekannte product_id: {self.missing_product_ids}")
        super().__init__("Referentielle Integrität verletzt - " + "; ".join(parts))


class DuplicateKeyError(ReportError):
    """
    Schlüsselspalte einer Nachschlagetabelle ist nicht eindeutig.

    Ein doppelter Schlüssel würde jede passende Position beim Join
    vervielfachen.
    """

    def __init__(self, table: str, column: str, duplicate_ids=()):
        self.table = table
        self.column = column
        self.duplicate_ids = _sorted_ids(set(duplicate_ids))
        super().__init__(
            f"Tabelle '{table}': {column} nicht eindeutig: {self.duplicate_ids}"
        )


class EmptyInputWarning(UserWarning):
    """Report über null Zeilen berechnet - Ergebnis ist leer, kein Fehler."""
