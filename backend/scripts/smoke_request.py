"""Run a quick smoke check against the app with FastAPI's TestClient.

Prints the health check and the current study group listing.
"""

import sys
import os

# Ensure backend folder is on sys.path so `studygroups` can be imported
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from fastapi.testclient import TestClient
from studygroups.config import settings
from studygroups.main import app


def run():
    client = TestClient(app)
    for path in ('/health', f'{settings.API_PREFIX}/study-groups?sort=desc'):
        resp = client.get(path)
        print(path, 'STATUS:', resp.status_code)
        print('JSON:', resp.json())


if __name__ == '__main__':
    run()
