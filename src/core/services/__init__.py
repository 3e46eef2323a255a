"""Servicios del Core: generación de candidatos, política de reintentos,
dispatcher concurrente, agregación y orquestación de la corrida."""
