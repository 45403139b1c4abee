"""
评论服务与认证服务测试

测试覆盖：
1. 评论必须且只能属于一个实体
2. 评论通知：实体名称解析、实体作者抄送、作者本人不抄送
3. 登录 / 注册错误映射为捷克语消息
4. 注册口令：未配置时 500，错误时 403，先于表单校验
5. 修改资料与密码
"""
import pytest

from src.core.errors import ErrorCode
from src.domain.models import User
from src.repositories.comment import CommentRepository
from src.repositories.match_result import MatchResultRepository
from src.services.auth_service import AuthService
from src.services.comment_service import CommentService
from src.services.match_result_service import MatchResultService

pytestmark = pytest.mark.asyncio

REGISTRATION = {
    "email": "nova@fotbal-fm.cz",
    "password": "Silne1Heslo",
    "firstName": "Eva",
    "lastName": "Malá",
    "jobTitle": "Vedoucí mládeže",
}


def as_user(fake_user) -> User:
    return User(
        id=fake_user.id,
        username=fake_user.email,
        email=fake_user.email,
        first_name=fake_user.firstname,
        last_name=fake_user.lastname,
        job_title=fake_user.job_title,
    )


@pytest.fixture
def comments(strapi_client, notifications):
    lookups = {"matchResult": MatchResultService(MatchResultRepository(strapi_client))}
    return CommentService(CommentRepository(strapi_client), notifications, lookups)


@pytest.fixture
def auth(strapi_client, notifications):
    return AuthService(strapi_client, notifications, registration_secret="klub-2026")


class TestCommentService:
    async def test_requires_exactly_one_entity(self, comments, fake_strapi):
        author, _ = fake_strapi.add_user()

        none = await comments.create({"content": "Ahoj"}, as_user(author))
        two = await comments.create(
            {"content": "Ahoj", "matchResult": "a", "event": "b"}, as_user(author)
        )

        assert none.error.message == "Komentář musí patřit právě k jedné entitě"
        assert two.error.message == "Komentář musí patřit právě k jedné entitě"
        assert fake_strapi.count("POST", "/api/comments") == 0

    async def test_empty_content(self, comments, fake_strapi):
        author, _ = fake_strapi.add_user()

        result = await comments.create({"content": "   ", "matchResult": "a"}, as_user(author))

        assert result.error.code == ErrorCode.VALIDATION_FAILED
        assert result.error.message == "Komentář nesmí být prázdný"

    async def test_notification_copies_entity_author(self, comments, notifications, email_sender, fake_strapi):
        owner, _ = fake_strapi.add_user(email="trener@fotbal-fm.cz")
        commenter, _ = fake_strapi.add_user(email="fanousek@fotbal-fm.cz", firstname="Karel")
        match = fake_strapi.insert(
            "match-results",
            {"homeTeam": "FC Domácí", "awayTeam": "SK Hosté", "homeScore": 2, "awayScore": 0, "author": owner.id},
        )

        result = await comments.create(
            {"content": "Krásný gól", "matchResult": match["documentId"]}, as_user(commenter)
        )
        await notifications.drain()

        assert result.success is True
        assert result.data.author.first_name == "Karel"
        assert email_sender.subjects == ["Nový komentář k: FC Domácí vs SK Hosté (2:0)"]
        assert email_sender.sent[0]["extra_recipients"] == ["trener@fotbal-fm.cz"]

    async def test_author_commenting_own_entity_is_not_copied(
        self, comments, notifications, email_sender, fake_strapi
    ):
        owner, _ = fake_strapi.add_user()
        match = fake_strapi.insert(
            "match-results",
            {"homeTeam": "A", "awayTeam": "B", "homeScore": 0, "awayScore": 0, "author": owner.id},
        )

        await comments.create({"content": "Díky všem", "matchResult": match["documentId"]}, as_user(owner))
        await notifications.drain()

        assert email_sender.sent[0]["extra_recipients"] == []

    async def test_unresolvable_entity_falls_back_to_id(self, comments, notifications, email_sender, fake_strapi):
        author, _ = fake_strapi.add_user()
        event = fake_strapi.insert("events", {"name": "Turnaj", "dateFrom": "2026-05-01"})

        await comments.create({"content": "Přijdu", "event": event["documentId"]}, as_user(author))
        await notifications.drain()

        # 活动没有注册用于解析名称的服务
        assert email_sender.subjects == [f"Nový komentář k: ID: {event['documentId']}"]

    async def test_invalid_entity_type(self, comments):
        result = await comments.get_by_entity("player", "x")

        assert result.error.message == "Neplatný typ entity"

    async def test_get_by_id_missing(self, comments):
        result = await comments.get_by_id("neexistuje")

        assert result.error.status_code == 404
        assert result.error.message == "Komentář nenalezen"


class TestAuthLogin:
    async def test_login_success(self, auth, fake_strapi):
        fake_strapi.add_user()

        result = await auth.login({"email": "trener@fotbal-fm.cz", "password": "Heslo123"})

        assert result.success is True
        assert result.data.user.job_title == "Trenér"
        assert result.data.jwt.startswith("jwt-")

    async def test_wrong_password_is_translated(self, auth, fake_strapi):
        fake_strapi.add_user()

        result = await auth.login({"email": "trener@fotbal-fm.cz", "password": "spatne"})

        assert result.error.code == ErrorCode.UNAUTHORIZED
        assert result.error.message == "Nesprávný email nebo heslo"

    async def test_invalid_email_format(self, auth, fake_strapi):
        result = await auth.login({"email": "trener", "password": "x"})

        assert result.error.message == "Neplatný formát emailu"
        assert fake_strapi.requests == []


class TestAuthRegistration:
    @pytest.mark.parametrize("email", ["a@.b.c", "jan@klub..cz", "jan novák@klub.cz", "   "])
    async def test_malformed_email_is_rejected(self, auth, fake_strapi, email):
        result = await auth.register({**REGISTRATION, "email": email}, secret="klub-2026")

        assert result.error.code == ErrorCode.VALIDATION_FAILED
        assert result.error.message == "Neplatný formát emailu"
        assert fake_strapi.requests == []

    async def test_email_is_trimmed(self, auth, fake_strapi):
        result = await auth.register({**REGISTRATION, "email": "  nova@fotbal-fm.cz "}, secret="klub-2026")

        assert result.data.user.email == "nova@fotbal-fm.cz"

    async def test_register_sets_profile_and_notifies(self, auth, notifications, email_sender, fake_strapi):
        result = await auth.register(REGISTRATION, secret="klub-2026")
        await notifications.drain()

        assert result.success is True
        assert result.data.user.first_name == "Eva"
        assert result.data.user.job_title == "Vedoucí mládeže"
        assert email_sender.subjects == ["Nový uživatel: Eva Malá"]

    async def test_secret_can_come_from_payload(self, auth):
        result = await auth.register({**REGISTRATION, "registrationSecret": "klub-2026"})

        assert result.success is True

    async def test_wrong_secret_is_checked_before_form(self, auth, fake_strapi):
        result = await auth.register({"email": "x"}, secret="spatne")

        assert result.error.status_code == 403
        assert result.error.message == "Neplatný registrační kód"
        assert fake_strapi.requests == []

    async def test_missing_configured_secret(self, strapi_client):
        service = AuthService(strapi_client, registration_secret=None)

        result = await service.register(REGISTRATION, secret="klub-2026")

        assert result.error.code == ErrorCode.INTERNAL_ERROR
        assert result.error.status_code == 500

    async def test_email_taken(self, auth, fake_strapi):
        fake_strapi.add_user(email="nova@fotbal-fm.cz")

        result = await auth.register(REGISTRATION, secret="klub-2026")

        assert result.error.message == "Tento email je již zaregistrován"

    async def test_weak_password(self, auth):
        result = await auth.register({**REGISTRATION, "password": "slabe"}, secret="klub-2026")

        assert result.error.message == "Heslo musí mít alespoň 8 znaků"

    async def test_validate_secret(self, auth):
        assert auth.validate_secret("klub-2026") is True
        assert auth.validate_secret("jiny") is False
        assert auth.validate_secret(None) is False


class TestAuthProfile:
    async def test_current_user_with_invalid_token(self, auth):
        result = await auth.get_current_user("neplatny")

        assert result.error.code == ErrorCode.UNAUTHORIZED
        assert result.error.message == "Vaše přihlášení vypršelo"

    async def test_update_own_profile(self, auth, user_and_token):
        user, token = user_and_token

        result = await auth.update_profile(
            token, user.id, {"firstName": "Josef", "lastName": "Novák", "jobTitle": "Předseda"}
        )

        assert result.data.first_name == "Josef"
        assert result.data.job_title == "Předseda"

    async def test_update_other_profile_is_forbidden(self, auth, fake_strapi, user_and_token):
        _, token = user_and_token
        other, _ = fake_strapi.add_user(email="jiny@fotbal-fm.cz")

        result = await auth.update_profile(
            token, other.id, {"firstName": "X", "lastName": "Y", "jobTitle": "Z"}
        )

        assert result.error.status_code == 403
        assert result.error.message == "Nemáte oprávnění upravovat tento profil"

    async def test_change_password(self, auth, fake_strapi, user_and_token):
        user, token = user_and_token

        result = await auth.change_password(
            token,
            {"currentPassword": "Heslo123", "newPassword": "NoveHeslo1", "confirmPassword": "NoveHeslo1"},
        )

        assert result.success is True
        assert fake_strapi.users[user.id].password == "NoveHeslo1"

    async def test_change_password_wrong_current(self, auth, user_and_token):
        _, token = user_and_token

        result = await auth.change_password(
            token,
            {"currentPassword": "spatne", "newPassword": "NoveHeslo1", "confirmPassword": "NoveHeslo1"},
        )

        assert result.error.code == ErrorCode.UNAUTHORIZED
        assert result.error.message == "Nesprávné současné heslo"

    async def test_password_confirmation_mismatch(self, auth, user_and_token):
        _, token = user_and_token

        result = await auth.change_password(
            token,
            {"currentPassword": "Heslo123", "newPassword": "NoveHeslo1", "confirmPassword": "JineHeslo1"},
        )

        assert result.error.message == "Hesla se neshodují"
