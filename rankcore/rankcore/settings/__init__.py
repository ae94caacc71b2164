# Por defecto: settings de desarrollo. Producción usa rankcore.rankcore.settings.prod
from .base import *  # noqa: F401,F403
