"""
User management tests - student rosters, profiles, settings and passwords
"""
from rest_framework import status

from lexilearn.testing import PASSWORD, LexiLearnAPITestCase

from .models import User


class StudentRosterTest(LexiLearnAPITestCase):

    def setUp(self):
        super().setUp()
        self.teacher = self.create_teacher()
        self.other_teacher = self.create_teacher(name='Other Teacher', email='other@test.com')
        self.student = self.create_student(self.teacher, name='Alice')
        self.foreign_student = self.create_student(self.other_teacher, name='Bob')

    def test_teacher_lists_own_students(self):
        self.create_student(self.teacher, name='Carol')
        self.authenticate(self.teacher)
        response = self.client.get('/api/users/students/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([s['name'] for s in response.data['students']], ['Alice', 'Carol'])
        self.assertEqual(response.data['total'], 2)
        self.assertEqual(response.data['currentPage'], 1)

    def test_pagination(self):
        for n in range(3):
            self.create_student(self.teacher, name=f'Extra {n}')
        self.authenticate(self.teacher)
        response = self.client.get('/api/users/students/?page=2&limit=3')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['totalPages'], 2)
        self.assertEqual(len(response.data['students']), 1)

    def test_admin_sees_every_student(self):
        self.authenticate(self.create_admin())
        response = self.client.get('/api/users/students/')
        self.assertEqual(response.data['total'], 2)

    def test_students_cannot_list(self):
        self.authenticate(self.student)
        response = self.client.get('/api/users/students/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_create_student_for_self(self):
        self.authenticate(self.teacher)
        response = self.client.post('/api/users/students/', {
            'name': 'Dora',
            'grade': 'Grade 3',
            'teacherId': str(self.other_teacher.id),
        })
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        created = User.objects.get(pk=response.data['student']['id'])
        self.assertEqual(created.teacher, self.teacher)
        self.assertEqual(created.grade, '3')
        self.assertEqual(len(response.data['student']['secretCode']), 9)

    def test_admin_must_name_teacher(self):
        self.authenticate(self.create_admin())
        response = self.client.post('/api/users/students/', {'name': 'Dora', 'grade': '3'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        response = self.client.post('/api/users/students/', {
            'name': 'Dora', 'grade': '3', 'teacherId': str(self.other_teacher.id),
        })
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['student']['teacherId'], str(self.other_teacher.id))

    def test_invalid_grade(self):
        self.authenticate(self.teacher)
        response = self.client.post('/api/users/students/', {'name': 'Dora', 'grade': '12'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('grade', response.data['errors'])

    def test_foreign_student_is_not_found(self):
        self.authenticate(self.teacher)
        url = f'/api/users/students/{self.foreign_student.id}/'
        self.assertEqual(self.client.get(url).status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(self.client.put(url, {'name': 'Hacked', 'grade': '3'}).status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(self.client.delete(url).status_code, status.HTTP_404_NOT_FOUND)
        self.foreign_student.refresh_from_db()
        self.assertEqual(self.foreign_student.name, 'Bob')

    def test_update_student(self):
        self.authenticate(self.teacher)
        response = self.client.patch(f'/api/users/students/{self.student.id}/', {'name': 'Alicia', 'grade': '4'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['student']['name'], 'Alicia')
        self.assertEqual(response.data['student']['grade'], '4')

    def test_delete_deactivates(self):
        self.authenticate(self.teacher)
        response = self.client.delete(f'/api/users/students/{self.student.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.student.refresh_from_db()
        self.assertFalse(self.student.is_active)

        listed = self.client.get('/api/users/students/').data['students']
        self.assertEqual(listed, [])
        listed = self.client.get('/api/users/students/?includeInactive=true').data['students']
        self.assertEqual(len(listed), 1)

    def test_regenerate_code(self):
        old_code = self.student.secret_code
        self.authenticate(self.teacher)
        response = self.client.post(f'/api/users/students/{self.student.id}/regenerate-code/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        new_code = response.data['secretCode']
        self.assertNotEqual(new_code, old_code)

        self.logout()
        response = self.client.post('/api/auth/student-login/', {'secretCode': old_code})
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        response = self.client.post('/api/auth/student-login/', {'secretCode': new_code})
        self.assertEqual(response.status_code, status.HTTP_200_OK)

    def test_regenerate_foreign_code(self):
        self.authenticate(self.teacher)
        response = self.client.post(f'/api/users/students/{self.foreign_student.id}/regenerate-code/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)


class ProfileTest(LexiLearnAPITestCase):

    def setUp(self):
        super().setUp()
        self.teacher = self.create_teacher()
        self.student = self.create_student(self.teacher)

    def test_get_profile(self):
        self.authenticate(self.student)
        response = self.client.get('/api/users/profile/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['user']['secretCode'], self.student.secret_code)
        self.assertNotIn('subject', response.data['user'])

    def test_teacher_updates_profile(self):
        self.authenticate(self.teacher)
        response = self.client.put('/api/users/profile/', {'school': 'Hill Primary', 'gradeLevel': '5th'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['user']['school'], 'Hill Primary')
        self.assertEqual(response.data['user']['gradeLevel'], '5')

    def test_student_cannot_change_school(self):
        self.authenticate(self.student)
        response = self.client.put('/api/users/profile/', {'school': 'Elsewhere'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_email_taken(self):
        self.create_teacher(name='Other', email='other@test.com')
        self.authenticate(self.teacher)
        response = self.client.put('/api/users/profile/', {'email': 'other@test.com'})
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)

    def test_settings_merge(self):
        self.authenticate(self.student)
        response = self.client.put('/api/users/settings/', {
            'theme': 'dark',
            'accessibility': {'fontSize': 'large'},
        })
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        settings = response.data['settings']
        self.assertEqual(settings['theme'], 'dark')
        self.assertEqual(settings['accessibility']['fontSize'], 'large')
        self.assertFalse(settings['accessibility']['highContrast'])
        self.assertTrue(settings['notifications']['email'])

    def test_settings_rejects_unknown_theme(self):
        self.authenticate(self.student)
        response = self.client.put('/api/users/settings/', {'theme': 'neon'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class PasswordTest(LexiLearnAPITestCase):

    def setUp(self):
        super().setUp()
        self.teacher = self.create_teacher()

    def test_change_password(self):
        self.authenticate(self.teacher)
        response = self.client.put('/api/users/change-password/', {
            'currentPassword': PASSWORD, 'newPassword': 'better-pass',
        })
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.teacher.refresh_from_db()
        self.assertTrue(self.teacher.check_password('better-pass'))

    def test_wrong_current_password(self):
        self.authenticate(self.teacher)
        response = self.client.put('/api/users/change-password/', {
            'currentPassword': 'wrong', 'newPassword': 'better-pass',
        })
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('currentPassword', response.data['errors'])

    def test_students_have_no_password(self):
        self.authenticate(self.create_student(self.teacher))
        response = self.client.put('/api/users/change-password/', {
            'currentPassword': 'x', 'newPassword': 'better-pass',
        })
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


class AdminDirectoryTest(LexiLearnAPITestCase):

    def setUp(self):
        super().setUp()
        self.admin = self.create_admin()
        self.teacher = self.create_teacher()
        self.create_student(self.teacher)

    def test_user_list_filters_by_role(self):
        self.authenticate(self.admin)
        response = self.client.get('/api/users/?role=teacher')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([u['id'] for u in response.data['users']], [str(self.teacher.id)])

    def test_teachers_endpoint(self):
        self.authenticate(self.admin)
        response = self.client.get('/api/users/teachers/')
        self.assertEqual(len(response.data['teachers']), 1)

    def test_teacher_cannot_list_users(self):
        self.authenticate(self.teacher)
        self.assertEqual(self.client.get('/api/users/').status_code, status.HTTP_403_FORBIDDEN)
