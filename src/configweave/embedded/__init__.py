"""Configurações embutidas usadas quando o arquivo base não existe."""
