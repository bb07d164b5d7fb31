"""
settings.py

Persistent settings management for fsmsync.

Handles cross-platform settings storage using TOML format with platformdirs
for proper user config directory detection.

Settings file location:
    - Windows: %APPDATA%/fsmsync/settings.toml
    - macOS: ~/Library/Application Support/fsmsync/settings.toml
    - Linux: ~/.config/fsmsync/settings.toml

Default values are documented in comments throughout this file.
If settings.toml is corrupted, these defaults will be used.
"""

from __future__ import annotations

import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import platformdirs

# TOML reading - use tomllib for Python 3.11+, tomli for earlier versions
if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

import tomli_w

APP_NAME = "fsmsync"

# Global settings manager instance (singleton)
_settings_manager: Optional["SettingsManager"] = None


def get_settings() -> "SettingsManager":
    """Get the global settings manager instance.

    Returns:
        The singleton SettingsManager instance.
    """
    global _settings_manager
    if _settings_manager is None:
        _settings_manager = SettingsManager()
    return _settings_manager


def _as_bool(value: Any, default: bool) -> bool:
    """Return *value* if it is a real TOML boolean, else *default*."""
    return value if isinstance(value, bool) else default


# =============================================================================
# Importer Settings
# =============================================================================

@dataclass
class ImporterGeometrySettings:
    """Diagram geometry the TikZ exporter is known to produce.

    Defaults:
        node_radius: 30.0
        coordinate_scale: 10.0
        accept_ring_inset: 6.0
        self_loop_radius_factor: 0.75
        self_loop_distance_factor: 1.5
        infer_node_radius: False
    """
    node_radius: float = 30.0                # Default: 30.0 canvas pixels
    coordinate_scale: float = 10.0           # Default: 10.0 (inverse of the exporter's 0.1)
    accept_ring_inset: float = 6.0           # Default: 6.0 pixels inside the outer ring
    self_loop_radius_factor: float = 0.75    # Default: 0.75 x node radius
    self_loop_distance_factor: float = 1.5   # Default: 1.5 x node radius from the node centre
    infer_node_radius: bool = False          # Default: False (use node_radius as given)


@dataclass
class ImporterMatchingSettings:
    """Tolerances used when matching primitives to nodes and edges.

    ``radius_tolerance`` is expressed in markup units, every other
    distance in canvas pixels.

    Defaults:
        radius_tolerance: 0.5
        dedupe_distance: 1.0
        node_label_factor: 1.5
        self_loop_distance_tolerance: 20.0
        straight_edge_padding: 10.0
        curved_edge_padding: 15.0
        arrowhead_distance: 20.0
        edge_label_distance: 80.0
        collinear_epsilon: 1e-9
    """
    radius_tolerance: float = 0.5               # Default: 0.5 markup units
    dedupe_distance: float = 1.0                # Default: 1.0 pixel
    node_label_factor: float = 1.5              # Default: 1.5 x node radius
    self_loop_distance_tolerance: float = 20.0  # Default: 20.0 pixels
    straight_edge_padding: float = 10.0         # Default: node radius + 10.0 pixels
    curved_edge_padding: float = 15.0           # Default: node radius + 15.0 pixels
    arrowhead_distance: float = 20.0            # Default: 20.0 pixels
    edge_label_distance: float = 80.0           # Default: 80.0 pixels
    collinear_epsilon: float = 1e-9             # Default: 1e-9 (relative determinant)


@dataclass
class ImporterSettings:
    """All importer-related settings."""
    geometry: ImporterGeometrySettings = field(default_factory=ImporterGeometrySettings)
    matching: ImporterMatchingSettings = field(default_factory=ImporterMatchingSettings)


# =============================================================================
# Debug Settings
# =============================================================================

@dataclass
class DebugSettings:
    """Diagnostic tracing settings.

    Defaults:
        trace: False
        trace_file: "" (stderr only)
    """
    trace: bool = False   # Default: False
    trace_file: str = ""  # Default: "" (no log file)


# =============================================================================
# Main App Settings
# =============================================================================

@dataclass
class AppSettings:
    """Application settings with default values.

    Attributes:
        importer: Reconstruction geometry and tolerances.
        debug: Diagnostic tracing settings.
    """
    importer: ImporterSettings = field(default_factory=ImporterSettings)
    debug: DebugSettings = field(default_factory=DebugSettings)


# =============================================================================
# Settings Manager
# =============================================================================

class SettingsManager:
    """Manages loading, saving, and accessing application settings.

    Settings are stored in a TOML file at the platform-appropriate location.
    If the settings file doesn't exist, defaults are used and the file is
    created on first save.

    Args:
        app_name: Application name used for the config directory.
    """

    def __init__(self, app_name: str = APP_NAME):
        self.settings_dir = Path(platformdirs.user_config_dir(app_name))
        self.settings_file = self.settings_dir / "settings.toml"
        self.settings = self.load()
        self._needs_save = not self.settings_file.exists()  # Save if file didn't exist

    def ensure_file_complete(self) -> None:
        """Ensure settings file exists with all sections. Call once at startup."""
        if self._needs_save or not self.settings_file.exists():
            self.save()
            self._needs_save = False

    def load(self) -> AppSettings:
        """Load settings from the TOML file.

        Returns:
            AppSettings instance with values from file or defaults if file
            doesn't exist or is invalid.
        """
        if not self.settings_file.exists():
            return AppSettings()

        try:
            with open(self.settings_file, "rb") as f:
                data = tomllib.load(f)

            return self._parse_toml(data)
        except (OSError, tomllib.TOMLDecodeError, AttributeError, TypeError, ValueError):
            # If file is corrupted or invalid, return defaults
            return AppSettings()

    def _parse_toml(self, data: Dict[str, Any]) -> AppSettings:
        """Parse TOML data into AppSettings.

        Args:
            data: Parsed TOML dictionary.

        Returns:
            AppSettings instance populated from TOML data.
        """
        settings = AppSettings()

        # Importer section
        importer = data.get("importer", {})
        if "geometry" in importer:
            g = importer["geometry"]
            geo = settings.importer.geometry
            geo.node_radius = float(g.get("node_radius", geo.node_radius))
            geo.coordinate_scale = float(g.get("coordinate_scale", geo.coordinate_scale))
            geo.accept_ring_inset = float(g.get("accept_ring_inset", geo.accept_ring_inset))
            geo.self_loop_radius_factor = float(g.get("self_loop_radius_factor", geo.self_loop_radius_factor))
            geo.self_loop_distance_factor = float(g.get("self_loop_distance_factor", geo.self_loop_distance_factor))
            geo.infer_node_radius = _as_bool(g.get("infer_node_radius"), geo.infer_node_radius)
        if "matching" in importer:
            m = importer["matching"]
            mat = settings.importer.matching
            mat.radius_tolerance = float(m.get("radius_tolerance", mat.radius_tolerance))
            mat.dedupe_distance = float(m.get("dedupe_distance", mat.dedupe_distance))
            mat.node_label_factor = float(m.get("node_label_factor", mat.node_label_factor))
            mat.self_loop_distance_tolerance = float(m.get("self_loop_distance_tolerance", mat.self_loop_distance_tolerance))
            mat.straight_edge_padding = float(m.get("straight_edge_padding", mat.straight_edge_padding))
            mat.curved_edge_padding = float(m.get("curved_edge_padding", mat.curved_edge_padding))
            mat.arrowhead_distance = float(m.get("arrowhead_distance", mat.arrowhead_distance))
            mat.edge_label_distance = float(m.get("edge_label_distance", mat.edge_label_distance))
            mat.collinear_epsilon = float(m.get("collinear_epsilon", mat.collinear_epsilon))

        # Debug section
        debug = data.get("debug", {})
        settings.debug.trace = _as_bool(debug.get("trace"), settings.debug.trace)
        settings.debug.trace_file = str(debug.get("trace_file", settings.debug.trace_file))

        return settings

    def save(self) -> None:
        """Save current settings to the TOML file.

        Creates the settings directory if it doesn't exist.
        """
        # Ensure directory exists
        self.settings_dir.mkdir(parents=True, exist_ok=True)

        # Convert settings to TOML structure
        data = self._to_toml_dict()

        with open(self.settings_file, "wb") as f:
            tomli_w.dump(data, f)

    def _to_toml_dict(self) -> Dict[str, Any]:
        """Convert settings to a TOML-compatible dictionary structure.

        Returns:
            Dictionary organized by TOML sections.
        """
        s = self.settings
        return {
            "importer": {
                "geometry": {
                    "node_radius": s.importer.geometry.node_radius,
                    "coordinate_scale": s.importer.geometry.coordinate_scale,
                    "accept_ring_inset": s.importer.geometry.accept_ring_inset,
                    "self_loop_radius_factor": s.importer.geometry.self_loop_radius_factor,
                    "self_loop_distance_factor": s.importer.geometry.self_loop_distance_factor,
                    "infer_node_radius": s.importer.geometry.infer_node_radius,
                },
                "matching": {
                    "radius_tolerance": s.importer.matching.radius_tolerance,
                    "dedupe_distance": s.importer.matching.dedupe_distance,
                    "node_label_factor": s.importer.matching.node_label_factor,
                    "self_loop_distance_tolerance": s.importer.matching.self_loop_distance_tolerance,
                    "straight_edge_padding": s.importer.matching.straight_edge_padding,
                    "curved_edge_padding": s.importer.matching.curved_edge_padding,
                    "arrowhead_distance": s.importer.matching.arrowhead_distance,
                    "edge_label_distance": s.importer.matching.edge_label_distance,
                    "collinear_epsilon": s.importer.matching.collinear_epsilon,
                },
            },
            "debug": {
                "trace": s.debug.trace,
                "trace_file": s.debug.trace_file,
            },
        }

    def to_toml(self) -> str:
        """Convert current settings to a TOML-formatted string.

        Returns:
            TOML representation of the current settings.
        """
        data = self._to_toml_dict()
        return tomli_w.dumps(data)

    def get_settings_path(self) -> Path:
        """Get the path to the settings file.

        Returns:
            Path object pointing to the settings file location.
        """
        return self.settings_file
