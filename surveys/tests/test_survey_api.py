from datetime import timedelta

from django.test import TestCase
from django.urls import reverse
from django.utils import timezone
from rest_framework.test import APIClient

from notifications.models import Notification
from surveys.models import Survey, SurveyQuestion, SurveyResponse
from users.models import User


def make_survey(creator, **kwargs):
    survey = Survey.objects.create(
        title=kwargs.pop("title", "Program Feedback"),
        description="Tell us how the program is going.",
        created_by=creator,
        **kwargs,
    )
    rating = SurveyQuestion.objects.create(
        survey=survey,
        question_text="How would you rate the sessions?",
        question_type=SurveyQuestion.TYPE_RATING,
        is_required=True,
        question_order=1,
    )
    comment = SurveyQuestion.objects.create(
        survey=survey,
        question_text="Anything else?",
        question_type=SurveyQuestion.TYPE_TEXTAREA,
        question_order=2,
    )
    return survey, rating, comment


class SurveyCreateTest(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.admin = User.objects.create_user(username="admin", password="pass", role="admin")
        self.pat = User.objects.create_user(username="pat", password="pass", role="participant")

    def test_create_survey_with_questions(self):
        self.client.force_authenticate(self.admin)
        resp = self.client.post(
            reverse("survey-list"),
            {
                "title": "Mid-program check-in",
                "description": "Short survey halfway through.",
                "questions": [
                    {"question_text": "Rate us", "question_type": "rating", "is_required": True},
                    {"question_text": "Favourite track", "question_type": "radio", "options": "Coding\nSpeaking\n"},
                ],
            },
            format="json",
        )
        self.assertEqual(resp.status_code, 201, msg=resp.content)

        survey = Survey.objects.get(title="Mid-program check-in")
        questions = list(survey.questions.all())
        self.assertEqual([q.question_order for q in questions], [1, 2])
        self.assertTrue(questions[0].is_required)
        self.assertEqual(questions[1].options, ["Coding", "Speaking"])
        self.assertTrue(Notification.objects.filter(user=self.pat, title="New Survey Available").exists())

    def test_choice_question_needs_options(self):
        self.client.force_authenticate(self.admin)
        resp = self.client.post(
            reverse("survey-list"),
            {
                "title": "Broken survey",
                "description": "Missing options here.",
                "questions": [
                    {"question_text": "Pick one", "question_type": "select"},
                    {"question_text": "", "question_type": "essay"},
                ],
            },
            format="json",
        )
        self.assertEqual(resp.status_code, 400)
        errors = resp.json()["errors"]
        self.assertIn("Question 1 requires options for the selected question type.", errors)
        self.assertIn("Question 2 text is required.", errors)
        self.assertIn("Question 2 has an invalid question type.", errors)
        self.assertFalse(Survey.objects.exists())

    def test_survey_needs_a_question(self):
        self.client.force_authenticate(self.admin)
        resp = self.client.post(
            reverse("survey-list"),
            {"title": "Empty survey", "description": "No questions at all.", "questions": []},
            format="json",
        )
        self.assertEqual(resp.status_code, 400)
        self.assertIn("At least one question is required.", resp.json()["errors"])

    def test_participant_cannot_create(self):
        self.client.force_authenticate(self.pat)
        resp = self.client.post(reverse("survey-list"), {"title": "x"}, format="json")
        self.assertEqual(resp.status_code, 403)


class SurveyTakeTest(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.admin = User.objects.create_user(username="admin", password="pass", role="admin")
        self.pat = User.objects.create_user(username="pat", password="pass", role="participant")
        self.survey, self.rating, self.comment = make_survey(self.admin)
        self.url = reverse("survey-take", args=[self.survey.pk])
        self.client.force_authenticate(self.pat)

    def test_submit_answers(self):
        resp = self.client.post(
            self.url, {"responses": {str(self.rating.pk): "4", str(self.comment.pk): "Great!"}}, format="json"
        )
        self.assertEqual(resp.status_code, 200, msg=resp.content)
        self.assertEqual(resp.json()["message"], "Thank you for completing the survey!")

        rating_row = SurveyResponse.objects.get(question=self.rating)
        self.assertEqual(rating_row.response_value, 4)
        self.assertEqual(rating_row.user, self.pat)
        self.assertEqual(SurveyResponse.objects.get(question=self.comment).response_text, "Great!")
        self.assertTrue(Notification.objects.filter(user=self.admin, title="Survey Response Received").exists())

    def test_form_encoded_answers(self):
        resp = self.client.post(self.url, {f"responses[{self.rating.pk}]": "5"})
        self.assertEqual(resp.status_code, 200, msg=resp.content)
        self.assertEqual(SurveyResponse.objects.filter(survey=self.survey).count(), 1)

    def test_blank_required_answer_writes_nothing(self):
        resp = self.client.post(
            self.url, {"responses": {str(self.rating.pk): " ", str(self.comment.pk): "Hi"}}, format="json"
        )
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["errors"], ["Question 1 is required."])
        self.assertFalse(SurveyResponse.objects.exists())

    def test_rating_out_of_range(self):
        resp = self.client.post(self.url, {"responses": {str(self.rating.pk): "9"}}, format="json")
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["errors"], ["Please provide a valid rating (1-5) for question 1."])
        self.assertFalse(SurveyResponse.objects.exists())

    def test_second_submission_rejected(self):
        self.client.post(self.url, {"responses": {str(self.rating.pk): "3"}}, format="json")
        resp = self.client.post(self.url, {"responses": {str(self.rating.pk): "5"}}, format="json")
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["message"], "You have already completed this survey.")
        self.assertEqual(SurveyResponse.objects.count(), 1)

        detail = self.client.get(self.url).json()
        self.assertTrue(detail["has_responded"])
        self.assertFalse(detail["can_take"])

    def test_inactive_survey(self):
        self.survey.is_active = False
        self.survey.save()
        resp = self.client.post(self.url, {"responses": {str(self.rating.pk): "3"}}, format="json")
        self.assertEqual(resp.json()["message"], "This survey is not currently active.")

    def test_date_window(self):
        self.survey.start_date = timezone.now() + timedelta(days=1)
        self.survey.save()
        self.assertEqual(self.client.get(self.url).json()["message"], "This survey is not yet available.")

        self.survey.start_date = None
        self.survey.end_date = timezone.now() - timedelta(days=1)
        self.survey.save()
        self.assertEqual(self.client.get(self.url).json()["message"], "This survey has ended.")

    def test_closed_survey_hidden_from_participants(self):
        self.survey.is_active = False
        self.survey.save()
        resp = self.client.get(reverse("survey-list"))
        self.assertEqual(resp.json()["results"], [])

    def test_anonymous_survey_stores_no_user(self):
        survey, rating, _ = make_survey(self.admin, title="Anonymous pulse", is_anonymous=True)
        resp = self.client.post(
            reverse("survey-take", args=[survey.pk]), {"responses": {str(rating.pk): "2"}}, format="json"
        )
        self.assertEqual(resp.status_code, 200)
        self.assertIsNone(SurveyResponse.objects.get(survey=survey).user)
        self.assertTrue(Notification.objects.filter(user=self.admin, title="New Survey Response").exists())


class SurveyResultsTest(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.admin = User.objects.create_user(username="admin", password="pass", role="admin")
        self.survey, self.rating, self.comment = make_survey(self.admin)
        for username, value in (("a", 5), ("b", 3)):
            user = User.objects.create_user(username=username, password="pass")
            SurveyResponse.objects.create(survey=self.survey, question=self.rating, user=user, response_value=value)

    def test_results_summary(self):
        self.client.force_authenticate(self.admin)
        resp = self.client.get(reverse("survey-results", args=[self.survey.pk]))
        self.assertEqual(resp.status_code, 200)
        results = resp.json()["results"]
        self.assertEqual(results["respondents"], 2)
        rating = results["questions"][0]
        self.assertEqual(rating["average"], 4.0)
        self.assertEqual(rating["distribution"]["5"], 1)
        self.assertEqual(rating["distribution"]["1"], 0)

    def test_results_need_permission(self):
        self.client.force_authenticate(User.objects.get(username="a"))
        resp = self.client.get(reverse("survey-results", args=[self.survey.pk]))
        self.assertEqual(resp.status_code, 403)
