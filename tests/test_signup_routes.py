import json
import unittest
from unittest.mock import patch

import main
from course_catalog import HANDOFF_KEY
from signup_form import SubmissionTransportError

HANDOFF_VALUE = "Scrum Master: 2 en 3 maart in Utrecht"


def _training_form(**overrides):
    data = {
        "name": "Jan Jansen",
        "email": "jan@politie.nl",
        "province": ["Utrecht", "Gelderland"],
        "course": "Scrum Master Basis / Beginner",
        "trainingDate": HANDOFF_VALUE,
        "costCenter": "12345",
        "eenheid": "Landelijke Eenheid",
        "team": "Team Alpha",
        "message": "",
        "privacyAccepted": "true",
        "action": "submit",
        "next": "/",
    }
    data.update(overrides)
    return data


def _team_form(**overrides):
    data = {
        "name": "Jan Jansen",
        "email": "jan@politie.nl",
        "province": ["Utrecht"],
        "phone": "06 1234 5678",
        "eenheid": "Landelijke Eenheid",
        "team": "Team Alpha",
        "message": "Wendbaarder werken",
        "privacyAccepted": "true",
        "action": "submit",
        "next": "/team-trajecten/",
    }
    data.update(overrides)
    return data


class SignupRouteTestCase(unittest.TestCase):
    def setUp(self):
        main.app.config.update(
            TESTING=True,
            SESSION_COOKIE_SECURE=False,
            SIGNUP_SUBMIT_URL="http://collector.test/api/submit",
        )
        self.client = main.app.test_client()

    def _get(self, location):
        return self.client.get(location.split("#", 1)[0])


class PageTests(SignupRouteTestCase):
    def test_home_renders_training_form(self):
        resp = self.client.get("/")
        self.assertEqual(resp.status_code, 200)
        body = resp.get_data(as_text=True)
        self.assertIn('id="signup-section"', body)
        self.assertIn("Aanmelden voor training", body)
        self.assertIn('id="costCenter"', body)
        self.assertNotIn('id="phone"', body)

    def test_team_page_renders_team_variant(self):
        resp = self.client.get("/team-trajecten/")
        self.assertEqual(resp.status_code, 200)
        body = resp.get_data(as_text=True)
        self.assertIn("Heb je interesse in een team traject", body)
        self.assertIn("Aanvraag indienen", body)
        self.assertIn('id="phone"', body)
        self.assertNotIn('id="costCenter"', body)
        self.assertNotIn('id="trainingDate"', body)

    def test_course_page_preselects_course(self):
        resp = self.client.get("/trainingen/scrum-master-basis/")
        self.assertEqual(resp.status_code, 200)
        body = resp.get_data(as_text=True)
        self.assertIn('value="Scrum Master Basis / Beginner" selected', body)
        self.assertIn("1.195", body)
        self.assertIn("Beschikbare data", body)

    def test_unknown_course_is_404(self):
        self.assertEqual(self.client.get("/trainingen/bestaat-niet/").status_code, 404)

    def test_standalone_signup_page_ignores_unknown_course(self):
        resp = self.client.get("/aanmelden/?course=Onbekend")
        self.assertEqual(resp.status_code, 200)
        self.assertIn('name="preselectedCourse" value=""', resp.get_data(as_text=True))

    def test_ops_endpoints(self):
        self.assertEqual(self.client.get("/healthz").status_code, 200)
        self.assertIn("User-agent", self.client.get("/robots.txt").get_data(as_text=True))
        self.assertEqual(self.client.get("/privacyverklaring").status_code, 200)


class ProvinceActionTests(SignupRouteTestCase):
    def test_toggle_appends_in_selection_order(self):
        data = _training_form(province=["Utrecht"], toggle="Drenthe")
        del data["action"]
        resp = self.client.post("/aanmelden/training/submit", data=data)
        self.assertEqual(resp.status_code, 200)
        body = resp.get_data(as_text=True)
        utrecht = body.index('<input type="hidden" name="province" value="Utrecht">')
        drenthe = body.index('<input type="hidden" name="province" value="Drenthe">')
        self.assertLess(utrecht, drenthe)
        self.assertIn('value="Jan Jansen"', body)

    def test_toggle_selected_province_removes_it(self):
        data = _training_form(province=["Utrecht"], toggle="Utrecht")
        del data["action"]
        with patch("signup.SubmissionClient.send") as send:
            resp = self.client.post("/aanmelden/training/submit", data=data)
        body = resp.get_data(as_text=True)
        self.assertNotIn('<input type="hidden" name="province" value="Utrecht">', body)
        send.assert_not_called()

    def test_remove_tag(self):
        data = _team_form(province=["Utrecht", "Limburg"], remove="Utrecht")
        del data["action"]
        resp = self.client.post("/aanmelden/team/submit", data=data)
        body = resp.get_data(as_text=True)
        self.assertNotIn('<input type="hidden" name="province" value="Utrecht">', body)
        self.assertIn('<input type="hidden" name="province" value="Limburg">', body)

    def test_toggle_keeps_the_course_page_around_the_form(self):
        data = _training_form(province=[], toggle="Utrecht", next="/trainingen/scrum-master-basis/")
        del data["action"]
        resp = self.client.post("/aanmelden/training/submit", data=data)
        self.assertEqual(resp.status_code, 200)
        body = resp.get_data(as_text=True)
        self.assertIn("1.195", body)
        self.assertIn("Beschikbare data", body)
        self.assertIn('<input type="hidden" name="province" value="Utrecht">', body)
        self.assertIn('name="next" value="/trainingen/scrum-master-basis/"', body)

    def test_remove_keeps_the_team_page(self):
        data = _team_form(province=["Utrecht"], remove="Utrecht")
        del data["action"]
        body = self.client.post("/aanmelden/team/submit", data=data).get_data(as_text=True)
        self.assertIn("<title>Team trajecten", body)

    def test_unknown_next_page_falls_back_to_signup_page(self):
        data = _training_form(toggle="Drenthe", next="/trainingen/bestaat-niet/")
        del data["action"]
        resp = self.client.post("/aanmelden/training/submit", data=data)
        self.assertEqual(resp.status_code, 200)
        self.assertIn("Aanmelden voor training", resp.get_data(as_text=True))

    def test_unknown_province_is_400(self):
        resp = self.client.post("/aanmelden/training/submit", data=_training_form(toggle="Vlaanderen"))
        self.assertEqual(resp.status_code, 400)

    def test_unknown_variant_is_404(self):
        resp = self.client.post("/aanmelden/wizard/submit", data=_training_form())
        self.assertEqual(resp.status_code, 404)


class SubmitFlowTests(SignupRouteTestCase):
    def test_team_without_phone_is_blocked_without_http(self):
        with patch("submission.requests.post") as post:
            resp = self.client.post("/aanmelden/team/submit", data=_team_form(phone=""))
        self.assertEqual(resp.status_code, 400)
        body = resp.get_data(as_text=True)
        self.assertIn("Telefoonnummer is verplicht.", body)
        self.assertIn("window.alert(", body)
        self.assertIn('value="Jan Jansen"', body)
        post.assert_not_called()

    def test_training_without_cost_center_is_blocked(self):
        with patch("signup.SubmissionClient.send") as send:
            resp = self.client.post("/aanmelden/training/submit", data=_training_form(costCenter=" "))
        self.assertEqual(resp.status_code, 400)
        self.assertIn("Kostenplaats is verplicht.", resp.get_data(as_text=True))
        send.assert_not_called()

    def test_empty_province_is_blocked(self):
        with patch("signup.SubmissionClient.send") as send:
            resp = self.client.post("/aanmelden/team/submit", data=_team_form(province=[]))
        self.assertEqual(resp.status_code, 400)
        send.assert_not_called()

    def test_training_success_posts_once_and_resets(self):
        with patch("signup.SubmissionClient.send", return_value=True) as send:
            resp = self.client.post("/aanmelden/training/submit", data=_training_form())
        self.assertEqual(resp.status_code, 302)
        self.assertIn("status=sent", resp.headers["Location"])
        self.assertTrue(resp.headers["Location"].endswith("#signup-section"))

        send.assert_called_once()
        payload = send.call_args.args[0]
        self.assertIn('"privacyAccepted":true', json.dumps(payload, separators=(",", ":")))
        self.assertEqual(payload["province"], ["Utrecht", "Gelderland"])
        self.assertEqual(payload["phone"], "")

        page = self._get(resp.headers["Location"])
        body = page.get_data(as_text=True)
        self.assertIn("Aanmelding succesvol verzonden!", body)
        self.assertNotIn('value="Jan Jansen"', body)
        self.assertNotIn('<input type="hidden" name="province"', body)

    def test_failed_submission_keeps_input(self):
        with patch("signup.SubmissionClient.send", return_value=False):
            resp = self.client.post("/aanmelden/team/submit", data=_team_form())
        self.assertEqual(resp.status_code, 200)
        body = resp.get_data(as_text=True)
        self.assertIn("Er is een fout opgetreden", body)
        self.assertIn("088-5326720", body)
        self.assertIn('value="Jan Jansen"', body)
        self.assertIn('value="06 1234 5678"', body)

    def test_transport_failure_keeps_input(self):
        with patch("signup.SubmissionClient.send", side_effect=SubmissionTransportError("refused")):
            resp = self.client.post("/aanmelden/training/submit", data=_training_form())
        body = resp.get_data(as_text=True)
        self.assertIn("Er is een fout opgetreden", body)
        self.assertIn('value="12345"', body)

    def test_next_cannot_leave_the_site(self):
        with patch("signup.SubmissionClient.send", return_value=True):
            resp = self.client.post(
                "/aanmelden/training/submit",
                data=_training_form(next="//evil.example/"),
            )
        self.assertTrue(resp.headers["Location"].startswith("/aanmelden/"))


class JsonSubmitTests(SignupRouteTestCase):
    def _payload(self, **overrides):
        data = {
            "name": "Jan",
            "email": "jan@politie.nl",
            "province": ["Utrecht"],
            "phone": "0612345678",
            "eenheid": "Oost-Brabant",
            "team": "Team B",
            "privacyAccepted": True,
        }
        data.update(overrides)
        return data

    def test_validation_error_as_json(self):
        with patch("signup.SubmissionClient.send") as send:
            resp = self.client.post("/aanmelden/team/submit", json=self._payload(phone=""))
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.get_json()["errors"], ["Telefoonnummer is verplicht."])
        self.assertEqual(resp.get_json()["field"], "phone")
        send.assert_not_called()

    def test_success_as_json(self):
        with patch("signup.SubmissionClient.send", return_value=True) as send:
            resp = self.client.post("/aanmelden/team/submit", json=self._payload())
        self.assertEqual(resp.status_code, 200)
        self.assertTrue(resp.get_json()["success"])
        self.assertEqual(send.call_args.args[0]["course"], "Team trajecten")

    def test_failure_as_json(self):
        with patch("signup.SubmissionClient.send", return_value=False):
            resp = self.client.post("/aanmelden/team/submit", json=self._payload())
        self.assertEqual(resp.status_code, 502)
        self.assertEqual(resp.get_json()["status"], "error")

    def test_non_object_json_is_400(self):
        resp = self.client.post("/aanmelden/team/submit", json=["nope"])
        self.assertEqual(resp.status_code, 400)

    def test_malformed_province_is_400(self):
        for bad in (5, [{"a": 1}], "Vlaanderen"):
            with patch("signup.SubmissionClient.send") as send:
                resp = self.client.post("/aanmelden/team/submit", json=self._payload(province=bad))
            self.assertEqual(resp.status_code, 400, bad)
            self.assertFalse(resp.get_json()["success"])
            send.assert_not_called()

    def test_non_string_preselected_course_is_400(self):
        payload = self._payload(preselectedCourse=5, costCenter="1", trainingDate="x")
        with patch("signup.SubmissionClient.send") as send:
            resp = self.client.post("/aanmelden/training/submit", json=payload)
        self.assertEqual(resp.status_code, 400)
        send.assert_not_called()


class DefaultReceiverTests(SignupRouteTestCase):
    def setUp(self):
        super().setUp()
        main.app.config["SIGNUP_SUBMIT_URL"] = ""
        self.addCleanup(main.app.config.update, SIGNUP_SUBMIT_URL="http://collector.test/api/submit")
        enabled = patch("api.course_settings.SIGNUP_NOTIFY_ENABLED", True)
        enabled.start()
        self.addCleanup(enabled.stop)

    def test_forwarded_host_never_picks_the_target(self):
        with patch("submission.requests.post") as post, \
                patch("api.send_signup_notification", return_value=True) as notify:
            resp = self.client.post(
                "/aanmelden/team/submit",
                data=_team_form(),
                headers={"X-Forwarded-Host": "169.254.169.254"},
            )
        self.assertEqual(resp.status_code, 302)
        post.assert_not_called()
        notify.assert_called_once()
        self.assertEqual(notify.call_args.args[0]["course"], "Team trajecten")

    def test_undelivered_signup_shows_error_banner(self):
        with patch("api.send_signup_notification", return_value=False):
            resp = self.client.post("/aanmelden/team/submit", data=_team_form())
        self.assertEqual(resp.status_code, 200)
        body = resp.get_data(as_text=True)
        self.assertIn("Er is een fout opgetreden", body)
        self.assertIn('value="Jan Jansen"', body)


class HandoffRouteTests(SignupRouteTestCase):
    def test_hero_handoff_is_consumed_once(self):
        resp = self.client.post(
            "/aanmelden/preselect",
            data={"trainingDate": HANDOFF_VALUE, "next": "/trainingen/scrum-master-basis/"},
        )
        self.assertEqual(resp.status_code, 302)
        self.assertTrue(resp.headers["Location"].endswith("/trainingen/scrum-master-basis/#signup-section"))
        with self.client.session_transaction() as sess:
            self.assertEqual(sess[HANDOFF_KEY], HANDOFF_VALUE)

        selected = f'value="{HANDOFF_VALUE}" selected'
        first = self._get(resp.headers["Location"]).get_data(as_text=True)
        self.assertIn(selected, first)
        with self.client.session_transaction() as sess:
            self.assertNotIn(HANDOFF_KEY, sess)

        second = self._get(resp.headers["Location"]).get_data(as_text=True)
        self.assertNotIn(selected, second)

    def test_team_page_does_not_consume_handoff(self):
        self.client.post("/aanmelden/preselect", data={"trainingDate": HANDOFF_VALUE, "next": "/"})
        self.client.get("/team-trajecten/")
        with self.client.session_transaction() as sess:
            self.assertEqual(sess[HANDOFF_KEY], HANDOFF_VALUE)

    def test_unlisted_handoff_value_stays_selectable(self):
        self.client.post(
            "/aanmelden/preselect",
            data={"trainingDate": "Scrum Master: 7 en 9 april in Utrecht", "next": "/"},
        )
        body = self.client.get("/").get_data(as_text=True)
        self.assertIn('value="Scrum Master: 7 en 9 april in Utrecht" selected', body)

    def test_external_next_falls_back_to_signup_page(self):
        resp = self.client.post(
            "/aanmelden/preselect",
            data={"trainingDate": HANDOFF_VALUE, "next": "https://evil.example/"},
        )
        self.assertTrue(resp.headers["Location"].endswith("/aanmelden/#signup-section"))


if __name__ == "__main__":
    unittest.main()
