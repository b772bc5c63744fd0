import logging
from typing import Annotated

from fastapi import Depends
from fastcrud import FastCRUD

from src.users.models import StaffUser

logger = logging.getLogger(__name__)

# Instance FastCRUD partagée pour les lectures simples par clé
staff_crud = FastCRUD(StaffUser)

def get_staff_crud() -> FastCRUD:
    """Fournit l'instance FastCRUD du personnel."""
    return staff_crud

StaffCRUDDep = Annotated[FastCRUD, Depends(get_staff_crud)]
