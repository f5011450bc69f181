from fastapi.testclient import TestClient
from schooladmin.main import app

client = TestClient(app)


def test_health():
    r = client.get('/health')
    assert r.status_code == 200
    assert r.json() == {'status': 'ok'}


def test_request_id_is_echoed():
    r = client.get('/health', headers={'X-Request-ID': 'abc123'})
    assert r.headers['X-Request-ID'] == 'abc123'
    assert client.get('/health').headers['X-Request-ID']


def test_non_numeric_id_is_validation_error():
    r = client.get('/students/abc')
    assert r.status_code == 400
    assert 'student_id' in r.json()['error']


def test_update_requires_body():
    created = client.post('/students', json={'name': 'Body Less', 'email': 'body@x.com'}).json()
    r = client.put(f"/students/{created['id']}")
    assert r.status_code == 400


def test_pool_timeout_maps_to_503(monkeypatch):
    from sqlalchemy.exc import TimeoutError as PoolTimeoutError

    def _exhausted(self):
        raise PoolTimeoutError("QueuePool limit of size 5 overflow 0 reached")

    monkeypatch.setattr("schooladmin.repositories.StudentRepository.count", _exhausted)
    r = client.get('/students')
    assert r.status_code == 503
    assert 'QueuePool limit' in r.json()['error']


def test_persistence_failure_maps_to_500(monkeypatch):
    from sqlalchemy.exc import OperationalError

    def _broken(self, *args, **kwargs):
        raise OperationalError("SELECT 1", {}, Exception("disk I/O error"))

    monkeypatch.setattr("schooladmin.repositories.TeacherRepository.list_page", _broken)
    r = client.get('/teachers')
    assert r.status_code == 500
    assert 'disk I/O error' in r.json()['error']
