from __future__ import annotations
import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent

DATABASE_URL = os.getenv('DATABASE_URL', 'sqlite:///words.db')
SEED_FILE = Path(os.getenv('SEED_FILE', str(BASE_DIR / 'temp' / 'words.txt')))
SEED_BATCH_SIZE = int(os.getenv('SEED_BATCH_SIZE', '10000'))
LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO').upper()
CORS_ORIGINS = [o.strip() for o in os.getenv('CORS_ORIGINS', '*').split(',') if o.strip()]
