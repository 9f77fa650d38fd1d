"""Particle heatmap simulator - entry point."""

from config import load_config
from utils.crash import configure as configure_crash, install_crash_handler

# Installed before loading so a broken config file lands in the crash log
install_crash_handler()
config = load_config()
configure_crash(config.logging.crash_file)

from ui.app import create_app

app = create_app(config)

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("simulator:app", host=config.server.host, port=config.server.port)
