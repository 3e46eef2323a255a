"""CLI (Typer + Rich): comandos, componentes visuales y diagnóstico."""
