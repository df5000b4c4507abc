import os
from dotenv import load_dotenv


class Config:
    load_dotenv()

    DEBUG = os.getenv("DEBUG", "true").lower() == "true"
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*")

    # Credenciales de la empresa (gettoken)
    WECOM_CORP_ID = os.getenv("WECOM_CORP_ID")
    WECOM_CORP_SECRET = os.getenv("WECOM_CORP_SECRET")
    WECOM_AGENT_ID = int(os.getenv("WECOM_AGENT_ID", "0") or 0)
    WECOM_API_BASE = os.getenv("WECOM_API_BASE", "https://qyapi.weixin.qq.com")

    # single-process | distributed
    WECOM_DEPLOYMENT_MODE = os.getenv("WECOM_DEPLOYMENT_MODE", "single-process")

    # Almacenamiento del access token: memory | file
    WECOM_TOKEN_STORE = os.getenv("WECOM_TOKEN_STORE", "memory")
    WECOM_TOKEN_FILE = os.getenv("WECOM_TOKEN_FILE", ".wecom_tokens.json")

    WECOM_HTTP_TIMEOUT = float(os.getenv("WECOM_HTTP_TIMEOUT", "20") or 20)

    # Clave compartida opcional para las rutas del relay
    RELAY_API_KEY = os.getenv("RELAY_API_KEY")
