"""Dominio del marketplace: entidades, formularios y claves de caché.

Por qué:
- Modelos Pydantic v2 con alias camelCase: el JSON del backend entra y sale
  sin mapeos manuales.
- `keys` define cómo se nombra un resultado cacheado; no conoce httpx ni CLI.
"""
