"""
WSGI entry point (Elastic Beanstalk, gunicorn application:application)
"""
# The energy sheet API lives in backend.app
from backend.app import app as application

# For local testing
if __name__ == "__main__":
    application.run(debug=True)
