# app.py: NexQuadra Admin API
# Flask + CORS (/api/* e /admin/*) + blueprints de routes/.
# Config por ENV (opcionalmente carregadas de .env).

import os, logging
from flask import Flask
from flask_cors import CORS
from dotenv import load_dotenv

from routes import register_blueprints

load_dotenv()

print("[boot] app.py NexQuadra carregado ✓", flush=True)
logging.basicConfig(level=logging.INFO)

# =====================================
# App + CORS (whitelist /api/* e /admin/*)
# =====================================
app = Flask(__name__)

_DEFAULT_ORIGINS = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]
ALLOWED_ORIGINS = [
    o.strip() for o in (os.getenv("ALLOWED_ORIGINS") or "").split(",") if o.strip()
] or _DEFAULT_ORIGINS

_cors_common = {
    "origins": ALLOWED_ORIGINS,
    "supports_credentials": True,
    "allow_headers": ["Authorization", "Content-Type", "X-Requested-With", "X-Job-Token"],
    "methods": ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
}

CORS(app, resources={
    r"/api/*": _cors_common,
    r"/admin/*": _cors_common,
})

# =====================================
# Blueprints
# =====================================
register_blueprints(app)
