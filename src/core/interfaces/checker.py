"""Contrato del verificador de estado.

Por qué Protocol:
- Define un contrato estructural (duck typing) sin herencia rígida.
- El dispatcher depende de esta abstracción; el adaptador de Registro.br y
  los stubs de test son intercambiables.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from core.domain.models import CheckOutcome


@runtime_checkable
class StatusChecker(Protocol):
    """Una consulta remota por llamada.

    Reglas de diseño:
    - `check` es asíncrono porque hace I/O (HTTP).
    - No reintenta: los reintentos son responsabilidad de la política.
    - No lanza por fallos esperables: los expresa como `CheckOutcome`.
    """

    async def check(self, domain_name: str) -> CheckOutcome:
        """Consulta el estado de `domain_name` (FQDN) y devuelve el resultado crudo."""

        ...
