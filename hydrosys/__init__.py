# ==============================================================================
# HydroSyS - Tienda y back-office de cilindros de gas
# ==============================================================================
# Capa Flask entre la interfaz y el backend REST de HydroSyS.
#   from hydrosys.main import app
# ==============================================================================

__version__ = '1.0.0'
