"""Contratos del Core (Protocol).

Por qué:
- `RequestSender` y `TokenStore` son lo único que el Core pide al exterior.
- Los tests sustituyen red y disco por stubs sin tocar los servicios.
"""
