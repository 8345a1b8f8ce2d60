"""
Capa 1 de Hydro-Monitor: ingesta de lecturas (MQTT y HTTP).
"""
