"""
WSGI Entry Point for Production Deployment
"""
import atexit
import os

from app import create_app
from app.config.database import close_db_connection

# Create application instance
app = create_app()
atexit.register(close_db_connection)

if __name__ == "__main__":
    port = int(os.environ.get('PORT', 8000))
    app.run(host='0.0.0.0', port=port)
