# coursedesk

coursedesk is a small HTTP service that keeps track of which students are
enrolled in which courses. It is a WSGI application backed by a MySQL database
holding three tables: `students`, `courses` and `course_enrollments`.

## Installing

```
pip install .
```

To run the tests as well:

```
pip install ".[test]"
pytest
```

## Running

The `coursedesk` command reads its configuration from two environment
variables:

- `DATABASE_URL`: the MySQL connection string in the form
  `user:password@net(address)/dbname?params`, for example
  `user:password@tcp(localhost:3306)/course_management?parseTime=true`.
  The network may be `tcp` (the default, address `127.0.0.1:3306` if left
  empty) or `unix` (a socket path, `/tmp/mysql.sock` if left empty). Of the
  query parameters only `charset` is used; the others are ignored.
- `APP_PORT`: the address to listen on, as `host:port`, for example `:8991`.
  An empty host listens on every interface.

Both must be set; if either is missing the command prints an error and exits
with status 1. Then start the server:

```
coursedesk
```

By default it waits 10 seconds before connecting, so that a database started
at the same moment has time to come up. Change the wait with
`--startup-delay`:

```
coursedesk --startup-delay 0
```

It then connects, pings the database and serves requests with Werkzeug's
built-in server (`werkzeug.serving.run_simple`).

## Endpoints

| Method | Path          | Input                                           |
|--------|---------------|-------------------------------------------------|
| POST   | `/signup`     | JSON body `{"student_id": 1, "course_id": 101}` |
| GET    | `/courses`    | query `?student_id=1`                           |
| POST   | `/cancel`     | JSON body `{"student_id": 1, "course_id": 101}` |
| GET    | `/classmates` | query `?student_id=1`                           |

An unknown path gets a 404 and a known path with the wrong method a 405.

Every response body is JSON with a `status` of `"success"` or `"failure"`; a
failure also carries a `message`. Missing, malformed or zero ids get a 400,
and a failure while reading or writing the database gets a 500. Error bodies
(400 and 500) are sent with content type `text/plain; charset=utf-8`;
successful ones with `application/json`.

Some outcomes are failures reported with a 200: a student or course that does
not exist (`"student data not found"`, `"course data not found"`), and a
repeated sign-up. A student may sign up for a course only once; a cancelled
enrollment still counts, so signing up again is refused with
`"student has enrolled before"`.

`/courses` lists only active enrollments and leaves out `courses` when there
are none. `/classmates` groups the other actively enrolled students by course
and writes `null` where there are no courses or no classmates.

Example sign-up response:

```json
{
  "status": "success",
  "enrollment_data": {
    "id": 1,
    "student_id": 1,
    "student_email": "student@example.com",
    "course_id": 101,
    "course_name": "Course Name",
    "status": 1,
    "create_time": "2023-08-25T00:00:00Z",
    "update_time": "2023-08-25T00:00:00Z"
  }
}
```

## Using it as a library

The layers can be assembled by hand, for example to serve the application
with another WSGI server:

```python
import pymysql

from coursedesk.enrollment import EnrollmentUseCase
from coursedesk.handlers import Handler
from coursedesk.main import parse_database_url
from coursedesk.repositories import (
    SQLCourseEnrollmentRepository,
    SQLCourseRepository,
    SQLStudentRepository,
)
from coursedesk.routes import setup_routes
from coursedesk.services import CourseEnrollmentService, CourseService, StudentService

connection = pymysql.connect(**parse_database_url(
    "user:password@tcp(localhost:3306)/course_management"
))
use_case = EnrollmentUseCase(
    StudentService(SQLStudentRepository(connection)),
    CourseService(SQLCourseRepository(connection)),
    CourseEnrollmentService(SQLCourseEnrollmentRepository(connection)),
)
app = setup_routes(Handler(use_case))
```

`app` is a WSGI callable (`coursedesk.routes.Application`).

The modules:

- `coursedesk.models`: the `Student`, `Course` and `CourseEnrollment` records
  and the `ResponseStatus` and `EnrollmentStatus` enums.
- `coursedesk.repositories`: SQL access through any DB-API connection using
  the `%s` parameter style. Database failures are raised as `RepositoryError`;
  cancelling an enrollment that does not exist raises `NoRowsAffectedError`.
- `coursedesk.services`: thin services over the repositories.
- `coursedesk.schemas`: request and response bodies with `from_dict` and
  `to_dict`.
- `coursedesk.enrollment`: `EnrollmentUseCase` with `course_sign_up`,
  `list_courses`, `cancel_course` and `list_classmates`. A failure that should
  become a 500 is raised as `EnrollmentError`, whose `response` holds the body
  to send.
- `coursedesk.handlers` and `coursedesk.routes`: the HTTP layer.
- `coursedesk.main`: the command, plus `parse_database_url` and `parse_port`.

## What it does not do

coursedesk does not create or migrate its tables; the `students`, `courses`
and `course_enrollments` tables must already exist. There is no endpoint for
adding students or courses. All requests share one database connection, and
the bundled command uses Werkzeug's development server rather than a
production WSGI server.