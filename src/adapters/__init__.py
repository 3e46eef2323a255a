"""Adaptadores de I/O: HTTP (Registro.br), archivo de salida y exportación JSON."""
