import pytest

from x_agent.core.errors import AuthenticationFailed, LoginFailureReason, LoginFlowError
from x_agent.core.login import LoginState, LoginStateMachine

from conftest import FakeElement, FakeFrame, FakeLoginPage, sel

S = LoginState


def machine(page, resolver, secondary_id=None, step_timeout=0.05, submit_timeout=0.1):
    return LoginStateMachine(
        page, resolver, "alice", "hunter2",
        secondary_id=secondary_id,
        step_timeout=step_timeout,
        submit_timeout=submit_timeout,
        humanize=False,
        poll_interval=0.01,
    )


def identifier_screen(page, next_screen="password"):
    field = page.add("identifier", sel("identifier_field"), FakeElement())
    page.add("identifier", sel("advance_button"), FakeElement(on_click=page.show(next_screen)))
    return field


def password_screen(page, on_login=None):
    field = page.add("password", sel("password_field"), FakeElement())
    page.add("password", sel("login_button"), FakeElement(on_click=on_login or page.land_home))
    return field


async def test_minimal_path_skips_optional_states(resolver):
    page = FakeLoginPage()
    identifier = identifier_screen(page)
    password = password_screen(page)
    login = machine(page, resolver)

    assert await login.run() is S.AUTHENTICATED
    assert login.visited == [S.ENTERING_IDENTIFIER, S.ENTERING_PASSWORD, S.SUBMITTING]
    assert login.state is S.AUTHENTICATED
    assert identifier.value == "alice"
    assert password.value == "hunter2"


async def test_secondary_verification_branch(resolver):
    page = FakeLoginPage()
    identifier_screen(page, next_screen="verify")
    verify = page.add("verify", sel("verification_field"), FakeElement())
    page.add("verify", sel("advance_button"), FakeElement(on_click=page.show("password")))
    password_screen(page)

    login = machine(page, resolver, secondary_id="alice@example.com")
    await login.run()

    assert login.visited == [S.ENTERING_IDENTIFIER, S.SECONDARY_VERIFICATION,
                             S.ENTERING_PASSWORD, S.SUBMITTING]
    assert verify.value == "alice@example.com"


async def test_verification_without_secondary_identifier_is_fatal(resolver):
    page = FakeLoginPage()
    identifier_screen(page, next_screen="verify")
    page.add("verify", sel("verification_field"), FakeElement())
    login = machine(page, resolver)

    with pytest.raises(LoginFlowError) as excinfo:
        await login.run()

    assert excinfo.value.reason is LoginFailureReason.VERIFICATION_REQUIRED_NO_FALLBACK
    assert login.state is S.FAILED
    assert login.visited[-1] is S.SECONDARY_VERIFICATION


async def test_security_challenge_is_cleared_by_continue_control(resolver):
    page = FakeLoginPage()
    identifier_screen(page, next_screen="challenge")
    page.add("challenge", sel("challenge_marker"), FakeElement(text="Unusual login activity"))
    page.add("challenge", sel("challenge_continue"), FakeElement(on_click=page.show("password")))
    password_screen(page)

    login = machine(page, resolver)
    await login.run()

    assert login.visited == [S.ENTERING_IDENTIFIER, S.SECURITY_CHALLENGE,
                             S.ENTERING_PASSWORD, S.SUBMITTING]


async def test_unresolvable_challenge(resolver):
    page = FakeLoginPage()
    identifier_screen(page, next_screen="challenge")
    page.add("challenge", sel("challenge_marker"), FakeElement())
    page.add("challenge", sel("challenge_continue"), FakeElement())

    with pytest.raises(LoginFlowError) as excinfo:
        await machine(page, resolver).run()
    assert excinfo.value.reason is LoginFailureReason.CHALLENGE_UNRESOLVABLE


async def test_missing_identifier_field(resolver):
    page = FakeLoginPage()
    with pytest.raises(LoginFlowError) as excinfo:
        await machine(page, resolver).run()
    assert excinfo.value.reason is LoginFailureReason.IDENTIFIER_FIELD_MISSING
    assert excinfo.value.state == S.ENTERING_IDENTIFIER.value


async def test_enter_advances_when_no_advance_control(resolver):
    page = FakeLoginPage()
    field = page.add("identifier", sel("identifier_field"),
                     FakeElement(on_press=lambda key: page.show("password")()))
    password_screen(page)

    await machine(page, resolver).run()
    assert field.pressed == ["Enter"]


async def test_password_found_by_frame_scan(resolver):
    page = FakeLoginPage()
    identifier_screen(page, next_screen="password")
    page.add("password", sel("login_button"), FakeElement(on_click=page.land_home))
    framed = FakeElement()
    page.child_frames = [FakeFrame(lambda s: [framed] if s == 'input[type="password"]' else [])]

    login = machine(page, resolver)
    await login.run()

    assert framed.value == "hunter2"
    assert login.visited == [S.ENTERING_IDENTIFIER, S.ENTERING_PASSWORD, S.SUBMITTING]


async def test_missing_password_field(resolver):
    page = FakeLoginPage()
    identifier_screen(page, next_screen="password")

    with pytest.raises(LoginFlowError) as excinfo:
        await machine(page, resolver).run()
    assert excinfo.value.reason is LoginFailureReason.PASSWORD_FIELD_MISSING


async def test_prefilled_password_is_replaced(resolver):
    page = FakeLoginPage()
    identifier_screen(page)
    password = password_screen(page)
    password.value = "stale"

    await machine(page, resolver).run()
    assert password.value == "hunter2"


async def test_wrong_credentials(resolver):
    page = FakeLoginPage()
    identifier_screen(page)
    page.add("error", sel("wrong_credentials_marker"), FakeElement(text="Wrong password!"))
    password_screen(page, on_login=page.show("error"))

    with pytest.raises(AuthenticationFailed) as excinfo:
        await machine(page, resolver).run()
    assert "Wrong password!" in str(excinfo.value)


async def test_alert_during_submit_carries_its_text(resolver):
    page = FakeLoginPage()
    identifier_screen(page)
    page.add("alert", sel("alert_marker"), FakeElement(text="Something went wrong"))
    password_screen(page, on_login=page.show("alert"))

    login = machine(page, resolver)
    with pytest.raises(AuthenticationFailed) as excinfo:
        await login.run()
    assert "Something went wrong" in str(excinfo.value)
    assert login.state is S.FAILED


async def test_submit_without_outcome_times_out(resolver):
    page = FakeLoginPage()
    identifier_screen(page)
    password_screen(page, on_login=lambda: None)

    with pytest.raises(LoginFlowError) as excinfo:
        await machine(page, resolver).run()
    assert excinfo.value.reason is LoginFailureReason.TIMEOUT
    assert excinfo.value.state == S.SUBMITTING.value
