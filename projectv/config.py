"""
Carregamento de configuração
settings.yaml + variáveis de ambiente (.env incluído)
"""
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv

# .env nunca sobrescreve o ambiente real
load_dotenv(override=False)


class Config:
    """Gerenciador de configuração"""

    _instance: Optional['Config'] = None
    _config: Dict[str, Any] = {}

    def __new__(cls) -> 'Config':
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._load_config()
        return cls._instance

    def _load_config(self) -> None:
        """Carrega o arquivo de configuração"""
        config_path = Path(__file__).parent.parent / 'config' / 'settings.yaml'

        if config_path.exists():
            with open(config_path, 'r', encoding='utf-8') as f:
                self._config = yaml.safe_load(f) or {}
        else:
            self._config = {}

    def reload(self) -> None:
        """Recarrega a configuração"""
        self._load_config()

    def get(self, key: str, default: Any = None) -> Any:
        """Lê um valor por caminho com pontos; o ambiente tem prioridade"""
        env_key = key.upper().replace('.', '_')
        env_value = os.environ.get(env_key)
        if env_value is not None:
            return env_value

        value = self._config
        for k in key.split('.'):
            if isinstance(value, dict):
                value = value.get(k)
            else:
                return default

            if value is None:
                return default

        return value

    def get_int(self, key: str, default: int) -> int:
        """Como get(), convertendo para int (variáveis de ambiente chegam como str)"""
        return int(self.get(key, default))

    def get_float(self, key: str, default: float) -> float:
        return float(self.get(key, default))

    @property
    def api_key(self) -> str:
        return str(self.get('openai.api_key', '') or '')


# Instância global
config = Config()
