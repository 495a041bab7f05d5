"""
Erreurs métier du moteur de réapprovisionnement.

Les services lèvent ces exceptions ; la couche HTTP les traduit en codes
de statut (voir app/api/errors.py). Aucune ne doit faire tomber le process.
"""

from __future__ import annotations


class InventoryError(Exception):
    """Base de toutes les erreurs métier."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotFound(InventoryError):
    pass


class InvalidInput(InventoryError):
    pass


class InvalidState(InventoryError):
    pass


class Conflict(InventoryError):
    pass


class AlreadyReceived(InventoryError):
    pass


class StorageError(InventoryError):
    """Échec du store (I/O, contrainte, verrou). Pas de retry automatique."""
