from datetime import date

from fastapi.testclient import TestClient
from schooladmin.main import app

client = TestClient(app)
YEAR = date.today().year


def _teacher(name, email, department='Science', **extra):
    r = client.post('/teachers', json={'name': name, 'email': email, 'department': department, **extra})
    assert r.status_code == 201, r.text
    return r.json()


def test_create_generates_employee_id():
    body = _teacher('Ada Lovelace', 'ada@x.com', salary=50000.5, status='on_leave')
    assert body['employeeId'] == f'EMP{YEAR}0001'
    assert body['hireDate'] == date.today().isoformat()
    assert body['salary'] == 50000.5
    assert body['status'] == 'on_leave'
    assert _teacher('Grace Hopper', 'grace@x.com')['employeeId'] == f'EMP{YEAR}0002'


def test_department_is_required():
    r = client.post('/teachers', json={'name': 'No Dept', 'email': 'nodept@x.com'})
    assert r.status_code == 400
    assert 'department' in r.json()['error']


def test_salary_must_not_be_negative():
    r = client.post('/teachers', json={'name': 'Neg Pay', 'email': 'neg@x.com', 'department': 'Arts', 'salary': -1})
    assert r.status_code == 400


def test_update_unknown_teacher_is_404():
    r = client.put('/teachers/999', json={'name': 'X'})
    assert r.status_code == 404
    assert r.json() == {'message': 'Teacher not found'}
    assert client.delete('/teachers/999').status_code == 404
    assert client.get('/teachers/999').status_code == 404


def test_update_partial_fields():
    tid = _teacher('Partial Update', 'partial@x.com')['id']
    r = client.put(f'/teachers/{tid}', json={'position': 'Head of Department', 'department': None})
    assert r.status_code == 400
    r = client.put(f'/teachers/{tid}', json={'position': 'Head of Department'})
    assert r.status_code == 200
    assert r.json()['position'] == 'Head of Department'
    assert r.json()['department'] == 'Science'


def test_populate_courses_is_narrowed():
    tid = _teacher('Course Owner', 'owner@x.com')['id']
    client.post('/courses', json={'title': 'Physics I', 'description': 'Mechanics', 'syllabus': 'long', 'teacherId': tid})
    body = client.get(f'/teachers/{tid}', params={'populate': 'courses'}).json()
    assert len(body['courses']) == 1
    assert set(body['courses'][0]) == {'id', 'title', 'description'}

    listing = client.get('/teachers', params={'populate': 'courses'}).json()
    assert listing['data'][0]['courses'][0]['title'] == 'Physics I'
    assert 'courses' not in client.get('/teachers').json()['data'][0]


def test_list_sort_by_department():
    _teacher('T One', 't1@x.com', department='Music')
    _teacher('T Two', 't2@x.com', department='Biology')
    r = client.get('/teachers', params={'sortBy': 'department', 'sort': 'asc'})
    assert [t['department'] for t in r.json()['data']] == ['Biology', 'Music']


def test_delete_teacher_unassigns_courses():
    tid = _teacher('Leaving Soon', 'leaving@x.com')['id']
    course = client.post('/courses', json={'title': 'Chemistry', 'teacherId': tid}).json()
    assert course['teacherId'] == tid

    r = client.delete(f'/teachers/{tid}')
    assert r.status_code == 200
    assert r.json() == {'message': 'Teacher deleted successfully'}

    after = client.get(f"/courses/{course['id']}", params={'populate': 'teacher'}).json()
    assert after['teacherId'] is None
    assert after['teacher'] is None
