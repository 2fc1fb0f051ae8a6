from fastapi.testclient import TestClient

from app.core.context import build_context
from app.core.settings import settings
from app.main import create_app
from app.services.report_store import InMemoryReportStore

client = TestClient(create_app(build_context(settings, store=InMemoryReportStore())))

print('ROOT:')
print(client.get('/').json())

print('\nHEALTH:')
print(client.get('/health').json())

print('\nDB HEALTH:')
resp = client.get('/health/db')
print(resp.status_code, resp.json())

print('\nSUBMIT:')
resp = client.post('/reports', json={
    'location': {'latitude': 36.0, 'longitude': -84.3},
    'address': 'Oak Ridge Turnpike',
    'animalType': 'Deer',
    'size': 'Medium',
})
print(resp.status_code, resp.json())

print('\nSTATS:')
print(client.get('/stats').json())
