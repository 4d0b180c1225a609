# ==============================================================================
# WSGI Entry Point - Para Gunicorn en producción
# ==============================================================================
# USO:
#   gunicorn wsgi:app --bind 0.0.0.0:$PORT
#
# ESTRUCTURA DEL PROYECTO:
#   repo_root/           <- Directorio de trabajo (en sys.path automáticamente)
#   ├── wsgi.py          <- Este archivo
#   ├── pyproject.toml
#   └── hydrosys/        <- Paquete Python
#       ├── main.py
#       ├── cli.py
#       ├── services/
#       ├── repositories/
#       └── models/
#
# Variables de entorno principales:
#   HYDROSYS_API_URL, HYDROSYS_SECRET_KEY, HYDROSYS_PRODUCTION_MODE
# ==============================================================================

from hydrosys.main import app

if __name__ == '__main__':
    app.run(debug=True, host='0.0.0.0', port=5000)
