# models/enums.py
import enum


class UserRole(str, enum.Enum):
    ADMIN = "admin"
    SUPERVISOR = "supervisor"
    ASESORA = "asesora"


class CaseStatus(str, enum.Enum):
    NUEVO = "nuevo"
    PENDIENTE_LLAMADA = "pendiente_llamada"
    CONTACTADO = "contactado"
    NO_CONTESTA = "no_contesta"
    SEGUIMIENTO = "seguimiento"
    CERRADO = "cerrado"


class ManagementType(str, enum.Enum):
    LLAMADA = "llamada"
    WHATSAPP = "whatsapp"
    EMAIL = "email"
    SEGUIMIENTO = "seguimiento"
    REAGENDAR = "reagendar"
    CIERRE_DE_CASO = "cierre_de_caso"
    OTRO = "otro"


def sql_in(enum_cls) -> str:
    """Render an enum's values for a CheckConstraint ``IN (...)`` clause."""
    return ",".join(f"'{member.value}'" for member in enum_cls)
