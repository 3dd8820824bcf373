# src/iot_dispatch/__main__.py
import asyncio
import os
import signal
import sys
import traceback
from pathlib import Path
from typing import Dict, Any, Optional

import yaml
from fastapi import FastAPI
from hypercorn.asyncio import serve
from hypercorn.config import Config as HyperConfig

from iot_dispatch.api.app import create_app
from iot_dispatch.core.gateway import DispatchGateway
from iot_dispatch.core.router import DeviceRouter
from iot_dispatch.utils.logging import setup_logging, get_logger
from iot_dispatch.utils.exceptions import ConfigurationError, InitializationError

DEFAULT_CONFIG_PATH = "src/config/default.yml"


class AppState:
    """Holds application state and components"""
    def __init__(self):
        self.gateway: Optional[DispatchGateway] = None
        self.router: Optional[DeviceRouter] = None


class ConfigManager:
    """Manages configuration loading and validation"""

    REQUIRED_SECTIONS = ['api', 'backend', 'directory', 'devices', 'logging']

    @staticmethod
    def load_config(config_path: str) -> Dict[str, Any]:
        """Load and validate configuration from YAML file"""
        try:
            with open(config_path, 'r') as f:
                config = yaml.safe_load(f)
        except yaml.YAMLError:
            raise ConfigurationError(f"Error parsing configuration file: {traceback.format_exc()}")
        except FileNotFoundError:
            raise ConfigurationError(f"Configuration file not found: {config_path}")

        if not isinstance(config, dict):
            raise ConfigurationError("Configuration file is empty or incorrectly formatted")

        # Validate required configuration sections
        missing_sections = [section for section in ConfigManager.REQUIRED_SECTIONS if section not in config]
        if missing_sections:
            raise ConfigurationError(f"Missing required configuration sections: {', '.join(missing_sections)}")

        return config


class APIServer:
    """Handles API server initialization and management"""

    def __init__(self, config: Dict[str, Any], shutdown_event: asyncio.Event, app_state: AppState):
        self.config = config
        self.shutdown_event = shutdown_event
        self.logger = get_logger("API Server")
        self.app: Optional[FastAPI] = None
        self.app_state = app_state

    async def initialize(self) -> FastAPI:
        """Initialize FastAPI application with routes"""
        try:
            self.app = create_app(self.app_state, self.config['api'].get('cors_origins'))
            return self.app
        except Exception:
            raise InitializationError(f"Failed to initialize API server: {traceback.format_exc()}")

    def hypercorn_config(self) -> HyperConfig:
        """Plain listener, plus a TLS listener when certificates are configured"""
        api = self.config['api']
        hypercorn_config = HyperConfig()
        plain_bind = f"{api['host']}:{api['port']}"

        tls = api.get('tls') or {}
        if tls.get('certfile') and tls.get('keyfile'):
            hypercorn_config.certfile = tls['certfile']
            hypercorn_config.keyfile = tls['keyfile']
            hypercorn_config.bind = [f"{api['host']}:{tls.get('port', 443)}"]
            hypercorn_config.insecure_bind = [plain_bind]
        else:
            hypercorn_config.bind = [plain_bind]
        return hypercorn_config

    async def start(self):
        """Start the API server"""
        if not self.app:
            await self.initialize()

        try:
            hypercorn_config = self.hypercorn_config()

            async def shutdown_trigger():
                await self.shutdown_event.wait()
                return

            for bind in hypercorn_config.insecure_bind + hypercorn_config.bind:
                self.logger.info(f"Listening for POST requests at {bind}/devices/{{device}}/{{op?}}/{{zone?}}")
            await serve(self.app, hypercorn_config, shutdown_trigger=shutdown_trigger)
        except Exception:
            self.logger.error(f"Failed to start API server: {traceback.format_exc()}")
            raise


class IoTDispatchApp:
    """Main dispatch gateway application class"""

    def __init__(self, config_path: str):
        self.logger = get_logger("Main App")
        try:
            self.config = ConfigManager.load_config(config_path)
            setup_logging(self.config.get('logging', {}))
        except ConfigurationError:
            self.logger.error(f"Configuration error: {traceback.format_exc()}")
            sys.exit(1)

        self.shutdown_event = asyncio.Event()
        self.app_state = AppState()
        self.api_server = APIServer(self.config, self.shutdown_event, self.app_state)

    async def initialize_components(self):
        """Initialize all application components"""
        try:
            self.app_state.gateway = DispatchGateway(self.config)
            await self.app_state.gateway.initialize()
            self.app_state.router = self.app_state.gateway.router
            self.logger.info("All components initialized successfully")
        except (KeyError, ConfigurationError) as e:
            raise InitializationError(f"Invalid configuration: {e}")
        except Exception:
            raise InitializationError(f"Failed to initialize components: {traceback.format_exc()}")

    async def shutdown(self):
        """Gracefully shutdown all components"""
        self.logger.info("Initiating shutdown sequence")
        try:
            if self.app_state.gateway:
                await self.app_state.gateway.shutdown()
            self.logger.info("Shutdown completed successfully")
        except Exception:
            self.logger.error(f"Error during shutdown: {traceback.format_exc()}")
        finally:
            self.shutdown_event.set()

    def handle_signals(self):
        """Set up signal handlers for graceful shutdown"""
        loop = asyncio.get_running_loop()

        def signal_handler(signum):
            self.logger.info(f"Received signal {signum}")
            loop.create_task(self.shutdown())

        for sig in (signal.SIGTERM, signal.SIGINT):
            loop.add_signal_handler(sig, signal_handler, sig)

    async def run(self):
        """Main application entry point"""
        try:
            self.handle_signals()
            await self.initialize_components()
            await self.api_server.start()
        except InitializationError:
            self.logger.error(f"Initialization error: {traceback.format_exc()}")
            await self.shutdown()
            sys.exit(1)
        except Exception:
            self.logger.error(f"Unexpected error: {traceback.format_exc()}")
            await self.shutdown()
            sys.exit(1)


def create_default_config(config_path: Path):
    """Create default configuration file if it doesn't exist"""
    if not config_path.exists():
        example_config = """
api:
  host: "0.0.0.0"
  port: 30000
  cors_origins: ["*"]

backend:
  host: "https://db.example.com"
  verify_ssl: false
  telemetry_path: "/ords/pdb1/smarthospitality/netatmo/set"
  timeout:
    connect: 5
    request: 10

directory:
  path: "/ords/pdb1/smarthospitality/admin/setup/baseport/{zone}"
  url_field: "baseurl"
  port_field: "baseport"
  proxy_host: "http://proxy.example.com"
  port_pattern: "18{baseport}1"

devices:
  telemetry:
    id: "NETATMO"
  lock:
    id: "NUKI"
    purpose: "UNLATCH"
    unlatch_path: "/UNLATCH"
  kiosk:
    id: "KIOSK"
    role: "COZMO"
    purpose: "ACTION"
    catalog_path: "/ords/pdb1/smarthospitality/cozmo/action/{zone}/{operation}"
    action_path: "/COZMO"
    placeholder: "$1"
    services:
      TOWELS: 1
      WATER: 2
      AMENITIES: 3
  aliases:
    COZMO: "KIOSK"
  timeout:
    connect: 1
    request: 20

logging:
  level: "INFO"
  file: "logs/iot_dispatch.log"
  max_size: 10
  backup_count: 5
  format: "%(asctime)s - %(name)s - [%(levelname)s] - %(message)s"
"""
        config_path.parent.mkdir(parents=True, exist_ok=True)
        config_path.write_text(example_config)
        print(f"Created default config at {config_path}")


def main():
    """Application entry point"""
    config_path = Path(os.environ.get("IOT_DISPATCH_CONFIG", DEFAULT_CONFIG_PATH))
    create_default_config(config_path)

    app = IoTDispatchApp(str(config_path))
    asyncio.run(app.run())

if __name__ == "__main__":
    main()
