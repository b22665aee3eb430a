import unittest

from application.services import (
    LinkOutcome,
    LinkResult,
    ReconcileOutcome,
    ReconcileResult,
)
from domain.models import Account
from interfaces.discord.messages import render_link_result, render_reconcile_result


class MessageRenderingTests(unittest.TestCase):
    def setUp(self) -> None:
        self.account = Account(id="a1", display_name="Steve", linked_identity="1")

    def test_every_link_outcome_has_a_message(self):
        for outcome in LinkOutcome:
            with self.subTest(outcome=outcome):
                self.assertTrue(render_link_result(LinkResult(outcome, self.account)))
                self.assertTrue(render_link_result(LinkResult(outcome)))

    def test_every_reconcile_outcome_has_a_message(self):
        for outcome in ReconcileOutcome:
            with self.subTest(outcome=outcome):
                self.assertTrue(
                    render_reconcile_result(ReconcileResult(outcome, self.account))
                )

    def test_success_messages_name_the_player(self):
        self.assertIn(
            '"Steve"', render_link_result(LinkResult(LinkOutcome.LINKED, self.account))
        )
        self.assertIn(
            '"Steve"',
            render_reconcile_result(
                ReconcileResult(ReconcileOutcome.RECONCILED, self.account)
            ),
        )

    def test_partial_link_points_to_resync(self):
        text = render_link_result(
            LinkResult(LinkOutcome.LINKED_ROLE_GRANT_FAILED, self.account)
        )
        self.assertIn("/resync", text)


if __name__ == "__main__":
    unittest.main()
