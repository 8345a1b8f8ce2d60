#!/usr/bin/env python3
"""
╔══════════════════════════════════════════════════════════════════════════════╗
║                   📦 Plugin Registry - Hydro-Monitor                         ║
║                     Layer 1: Dynamic Plugin Discovery                         ║
╚══════════════════════════════════════════════════════════════════════════════╝

Sistema de registro de plugins.
Permite registrar, listar y obtener plugins por nombre o por tópico MQTT.

Author: Hydro-Monitor Team
"""

import logging
from typing import Dict, List, Optional

from ingestion.plugins.base import SensorPlugin


logger = logging.getLogger(__name__)


class PluginNotFoundError(Exception):
    """Excepción cuando no se encuentra un plugin."""
    pass


class PluginRegistry:
    """
    📦 Registro de plugins de sensores.

    Example:
        >>> registry = PluginRegistry()
        >>> registry.register(WaterTopicPlugin())
        >>> plugin = registry.get_for_topic("sensor33/water")
        >>> fields = plugin.normalize_data({"temperature": 24.1})
    """

    def __init__(self):
        self._plugins: Dict[str, SensorPlugin] = {}

    def register(self, plugin: SensorPlugin) -> None:
        """
        Registra un plugin.

        Raises:
            ValueError: Si el plugin ya está registrado
        """
        name = plugin.name
        if name in self._plugins:
            raise ValueError(f"Plugin '{name}' is already registered")

        self._plugins[name] = plugin
        logger.debug(f"📦 Plugin registrado: {plugin}")

    def get(self, name: str) -> SensorPlugin:
        """
        Obtiene un plugin por nombre.

        Raises:
            PluginNotFoundError: Si el plugin no existe
        """
        if name not in self._plugins:
            available = ", ".join(self._plugins.keys()) or "none"
            raise PluginNotFoundError(
                f"Plugin '{name}' not found. Available: {available}"
            )
        return self._plugins[name]

    def get_for_topic(self, topic: str) -> SensorPlugin:
        """
        Obtiene el plugin que atiende un tópico MQTT.

        Raises:
            PluginNotFoundError: Si ningún plugin atiende el tópico
        """
        for plugin in self._plugins.values():
            if plugin.topic == topic:
                return plugin
        raise PluginNotFoundError(f"No plugin for topic '{topic}'")

    def topics(self) -> List[str]:
        """Tópicos MQTT a los que hay que suscribirse."""
        return [p.topic for p in self._plugins.values() if p.topic]

    def __len__(self) -> int:
        return len(self._plugins)

    def __contains__(self, name: str) -> bool:
        return name in self._plugins


def get_default_registry(registry: Optional[PluginRegistry] = None) -> PluginRegistry:
    """
    Retorna un registro con los plugins por defecto cargados.

    Returns:
        PluginRegistry con los plugins MQTT y HTTP preregistrados
    """
    from ingestion.plugins.http_json_plugin import Esp32JsonPlugin, ReadingJsonPlugin
    from ingestion.plugins.mqtt_topic_plugins import AirTopicPlugin, WaterTopicPlugin

    if registry is None:
        registry = PluginRegistry()

    for plugin in (AirTopicPlugin(), WaterTopicPlugin(), Esp32JsonPlugin(), ReadingJsonPlugin()):
        if plugin.name not in registry:
            registry.register(plugin)

    return registry
