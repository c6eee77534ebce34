"""Configuration management for the Meal Planner application."""
import os
from typing import Final
from pathlib import Path

from dotenv import load_dotenv

# Load environment variables from .env file if it exists
env_path = Path(__file__).parent.parent.parent / '.env'
if env_path.exists():
    load_dotenv(env_path)

# File Paths
BASE_DIR: Final[Path] = Path(__file__).parent.parent
DATA_DIR: Final[Path] = BASE_DIR / 'data'
STATIC_DIR: Final[Path] = BASE_DIR / 'static'
TEMPLATES_DIR: Final[Path] = BASE_DIR / 'templates'

# Database
DATABASE_URL: Final[str] = os.getenv('DATABASE_URL', f"sqlite:///{DATA_DIR / 'meals.db'}")

# AI Configuration
OPENAI_API_KEY: Final[str] = os.getenv('OPENAI_API_KEY', '')
OPENAI_MODEL: Final[str] = os.getenv('OPENAI_MODEL', 'gpt-4o-mini')
GENERATION_LANGUAGE: Final[str] = os.getenv('GENERATION_LANGUAGE', 'Italian')

# Application Settings
APP_HOST: Final[str] = os.getenv('APP_HOST', '0.0.0.0')
APP_PORT: Final[int] = int(os.getenv('APP_PORT', '8000'))
DEBUG: Final[bool] = os.getenv('DEBUG', 'False').lower() == 'true'
LOG_LEVEL: Final[str] = os.getenv('LOG_LEVEL', 'INFO').upper()
