# ==============================================================================
# SISTEMA DE PROFILING Y LOGS
# ==============================================================================
# Mide rendimiento de rutas y de llamadas remotas sin afectar al operador.
# Los logs legibles quedan en POS_LOGS_DIR:
#   performance.log  → todas las rutas atendidas
#   slow_calls.log   → rutas y llamadas remotas que superan los umbrales
#
# ACTIVAR/DESACTIVAR: POS_ENABLE_PROFILING (ver config.py)
# ==============================================================================

import logging
import os
import threading
import time
from collections import defaultdict
from functools import wraps
from typing import Any, Callable, Dict, Optional

from pos_terminal.config import Settings


# ═══════════════════════════════════════════════════════════════════════════
# CONFIGURACIÓN
# ═══════════════════════════════════════════════════════════════════════════

# Umbrales de tiempo (en milisegundos)
THRESHOLD_WARNING = 300   # Advertencia si supera 300ms
THRESHOLD_CRITICAL = 700  # Crítico si supera 700ms

PERFORMANCE_LOGGER = 'pos_terminal.performance'
SLOW_LOGGER = 'pos_terminal.slow'

perf_log = logging.getLogger(PERFORMANCE_LOGGER)
slow_log = logging.getLogger(SLOW_LOGGER)

_enabled = True

# Mapeo de rutas a nombres legibles
ROUTE_NAMES = {
    # Sesión
    'POST /login': 'Iniciar sesión',
    'POST /logout': 'Cerrar sesión',

    # Catálogo
    'GET /api/productos': 'Buscar productos',
    'POST /api/productos/recargar': 'Recargar catálogo',
    'GET /api/productos/stock-bajo': 'Ver stock bajo',

    # Carrito
    'GET /api/carrito': 'Ver carrito',
    'POST /api/carrito/agregar': 'Agregar al carrito',
    'POST /api/carrito/cantidad': 'Cambiar cantidad',
    'POST /api/carrito/eliminar': 'Eliminar del carrito',
    'POST /api/carrito/limpiar': 'Vaciar carrito',
    'POST /api/carrito/pago': 'Editar pago',
    'POST /api/carrito/confirmar': 'Confirmar venta',
    'POST /api/carrito/confirmar/ack': 'Cerrar resultado de venta',

    # Ventas
    'GET /api/ventas': 'Ver ventas',
    'GET /api/ventas/<int:sale_id>': 'Ver boleta',
}


# ═══════════════════════════════════════════════════════════════════════════
# INICIALIZACIÓN
# ═══════════════════════════════════════════════════════════════════════════

def setup_logging(settings: Settings) -> None:
    """
    Configura handlers de archivo para los logs de rendimiento.

    Idempotente: no duplica handlers si se llama más de una vez.

    Args:
        settings: Configuración del terminal (logs_dir, enable_profiling)
    """
    global _enabled
    _enabled = settings.enable_profiling
    if not _enabled:
        return

    os.makedirs(settings.logs_dir, exist_ok=True)
    formatter = logging.Formatter('%(asctime)s [%(levelname)s] %(message)s', '%Y-%m-%d %H:%M:%S')

    for logger, filename in ((perf_log, 'performance.log'), (slow_log, 'slow_calls.log')):
        path = os.path.join(settings.logs_dir, filename)
        already = any(
            isinstance(h, logging.FileHandler) and h.baseFilename == os.path.abspath(path)
            for h in logger.handlers
        )
        if already:
            continue
        handler = logging.FileHandler(path, encoding='utf-8')
        handler.setFormatter(formatter)
        logger.addHandler(handler)
        logger.setLevel(logging.INFO)


def is_enabled() -> bool:
    return _enabled


# ═══════════════════════════════════════════════════════════════════════════
# ESTADÍSTICAS DE FUNCIONES (en memoria)
# ═══════════════════════════════════════════════════════════════════════════

# Estructura: {nombre_funcion: {calls: int, total_time: float, max_time: float}}
_function_stats = defaultdict(lambda: {'calls': 0, 'total_time': 0.0, 'max_time': 0.0})
_stats_lock = threading.Lock()


def _get_route_name(method: str, path: str, rule: Optional[str] = None) -> str:
    """
    Obtiene nombre legible para una ruta.
    Intenta match exacto, luego con la regla de Flask, si no devuelve la ruta raw.
    """
    key = f"{method} {path}"
    if key in ROUTE_NAMES:
        return ROUTE_NAMES[key]
    if rule:
        rule_key = f"{method} {rule}"
        if rule_key in ROUTE_NAMES:
            return ROUTE_NAMES[rule_key]
    return key


def _severity(time_ms: float) -> Optional[int]:
    if time_ms >= THRESHOLD_CRITICAL:
        return logging.CRITICAL
    if time_ms >= THRESHOLD_WARNING:
        return logging.WARNING
    return None


# ═══════════════════════════════════════════════════════════════════════════
# 1️⃣ HOOKS PARA FLASK (before/after request)
# ═══════════════════════════════════════════════════════════════════════════

def init_profiling(app) -> None:
    """
    Registra hooks before_request / after_request en una app Flask.

    Uso:
        from pos_terminal.performance_logger import init_profiling
        init_profiling(app)
    """

    @app.before_request
    def _start_timer():
        from flask import g
        g.start_time = time.perf_counter()

    @app.after_request
    def _log_request(response):
        from flask import g, request, session

        if not _enabled or not hasattr(g, 'start_time'):
            return response
        if request.path.startswith('/static'):
            return response

        elapsed = (time.perf_counter() - g.start_time) * 1000  # ms
        rule = str(request.url_rule) if request.url_rule else request.path
        action_name = _get_route_name(request.method, request.path, rule)
        user = session.get('user') or 'anónimo'

        perf_log.info(
            "%s | usuario=%s | %s %s | %s | %.0f ms",
            action_name, user, request.method, request.path, response.status_code, elapsed
        )
        level = _severity(elapsed)
        if level is not None:
            slow_log.log(
                level, "Ruta lenta: %s | usuario=%s | %.0f ms", action_name, user, elapsed
            )
        return response


# ═══════════════════════════════════════════════════════════════════════════
# 2️⃣ DECORADOR PARA LLAMADAS CLAVE
# ═══════════════════════════════════════════════════════════════════════════

def profile_function(func: Callable = None, name: str = None):
    """
    Decorador para medir el tiempo de funciones críticas (llamadas remotas).

    Uso:
        @profile_function
        def mi_funcion():
            ...

        @profile_function(name="Registrar venta")
        def create_sale(...):
            ...

    Registra cantidad de llamadas, tiempo promedio y máximo; las llamadas
    que superan los umbrales se escriben en slow_calls.log.
    """
    def decorator(fn):
        func_name = name or fn.__name__

        @wraps(fn)
        def wrapper(*args, **kwargs):
            if not _enabled:
                return fn(*args, **kwargs)
            start = time.perf_counter()
            try:
                return fn(*args, **kwargs)
            finally:
                elapsed_ms = (time.perf_counter() - start) * 1000
                with _stats_lock:
                    stats = _function_stats[func_name]
                    stats['calls'] += 1
                    stats['total_time'] += elapsed_ms
                    if elapsed_ms > stats['max_time']:
                        stats['max_time'] = elapsed_ms

                level = _severity(elapsed_ms)
                if level is not None:
                    slow_log.log(level, "Llamada lenta: %s | %.0f ms", func_name, elapsed_ms)

        return wrapper

    # Permitir uso sin paréntesis: @profile_function
    if func is not None:
        return decorator(func)
    return decorator


# ═══════════════════════════════════════════════════════════════════════════
# 3️⃣ REPORTE DE ESTADÍSTICAS
# ═══════════════════════════════════════════════════════════════════════════

def get_function_stats() -> Dict[str, Dict[str, Any]]:
    """
    Obtiene estadísticas de todas las funciones perfiladas.

    Returns:
        dict: {nombre: {calls, avg_time, max_time}}
    """
    with _stats_lock:
        result = {}
        for func_name, stats in _function_stats.items():
            calls = stats['calls']
            avg = stats['total_time'] / calls if calls > 0 else 0
            result[func_name] = {
                'calls': calls,
                'avg_time': round(avg, 2),
                'max_time': round(stats['max_time'], 2)
            }
        return result


def reset_stats() -> None:
    """Reinicia todas las estadísticas (útil para testing)."""
    with _stats_lock:
        _function_stats.clear()


__all__ = [
    'THRESHOLD_WARNING',
    'THRESHOLD_CRITICAL',
    'setup_logging',
    'is_enabled',
    'init_profiling',
    'profile_function',
    'get_function_stats',
    'reset_stats',
]
