import pytest

from bangdoc.annotations.models import AnnotationKind
from bangdoc.annotations.parser import clean_description, parse_annotation, parse_annotations


class TestParseAnnotations:
    def test_skips_prose_and_blank_lines(self):
        text = """GetUsers retrieves all users.

        !GET /users -> getUsers "Get all users" #users

        !ok User[] "Successful response"
        """
        annotations = parse_annotations(text)
        assert [a.kind for a in annotations] == [AnnotationKind.ROUTE, AnnotationKind.OK]

    def test_unknown_verb_is_ignored(self):
        assert parse_annotations("!frobnicate a b c\n!api 3.1.0") == [parse_annotation("!api 3.1.0")]

    def test_unterminated_quote_drops_only_that_line(self):
        good = '!GET /users -> getUsers "Get users"\n!ok User "Success"\n!tag users "Users"'
        bad = '!GET /users -> getUsers "Get users"\n!ok User "Success\n!tag users "Users"'
        assert len(parse_annotations(bad)) == len(parse_annotations(good)) - 1

    def test_never_raises_on_garbage(self):
        assert parse_annotations('!info\n!error\n!link "x"\n!security a\n!body\n!<>') == []


class TestApiLevelVerbs:
    def test_api(self):
        assert parse_annotation("!api 3.0.3").version == "3.0.3"

    def test_info_strips_version_prefix(self):
        info = parse_annotation('!info "Test API" v1.0.0 "A test API"')
        assert (info.title, info.version, info.description) == ("Test API", "1.0.0", "A test API")

    def test_contact(self):
        contact = parse_annotation('!contact "Support" <support@test.com> (https://test.com/help)')
        assert contact.name == "Support"
        assert contact.email == "support@test.com"
        assert contact.url == "https://test.com/help"

    def test_contact_bare_words(self):
        contact = parse_annotation("!contact support@test.com https://test.com")
        assert contact.name == ""
        assert contact.email == "support@test.com"
        assert contact.url == "https://test.com"

    def test_license(self):
        lic = parse_annotation("!license MIT https://opensource.org/licenses/MIT")
        assert lic.name == "MIT"
        assert lic.url == "https://opensource.org/licenses/MIT"

    def test_server_and_tag(self):
        server = parse_annotation('!server https://api.test.com/v1 "Production"')
        tag = parse_annotation('!tag users "User operations"')
        assert (server.url, server.description) == ("https://api.test.com/v1", "Production")
        assert (tag.name, tag.description) == ("users", "User operations")

    def test_link_needs_label_and_url(self):
        assert parse_annotation('!link "Docs" https://docs.test').url == "https://docs.test"
        assert parse_annotation('!link "Docs"') is None

    def test_external_docs_alias(self):
        assert parse_annotation("!docs https://docs.test").kind == AnnotationKind.EXTERNAL_DOCS

    @pytest.mark.parametrize(
        "line, expected",
        [
            ('!security bearer http bearer "JWT" format=JWT', ("bearer", "http", "bearer", "")),
            ("!security key apikey header X-API-Key", ("key", "apiKey", "header", "X-API-Key")),
            ("!security auth oauth2 implicit https://a.test/authorize", ("auth", "oauth2", "implicit", "https://a.test/authorize")),
            ("!security oidc openidconnect https://a.test/.well-known", ("oidc", "openIdConnect", "", "https://a.test/.well-known")),
        ],
    )
    def test_security(self, line, expected):
        sec = parse_annotation(line)
        assert (sec.name, sec.type, sec.location, sec.url) == expected

    def test_security_unknown_type(self):
        assert parse_annotation("!security weird mtls") is None

    def test_security_bearer_format(self):
        assert parse_annotation('!security bearer http bearer "JWT" format=JWT').bearer_format == "JWT"

    def test_scope_name_with_colon(self):
        scope = parse_annotation('!scope petstore read:pets "Read pets"')
        assert (scope.security, scope.name, scope.description) == ("petstore", "read:pets", "Read pets")


class TestOperationVerbs:
    def test_route(self):
        route = parse_annotation('!GET /users/{id} -> getUser "Get a user" #users #admin')
        assert route.method == "GET"
        assert route.path == "/users/{id}"
        assert route.operation_id == "getUser"
        assert route.summary == "Get a user"
        assert route.tags == ("users", "admin")
        assert route.deprecated is False

    def test_route_lowercase_verb_and_deprecated(self):
        route = parse_annotation("!patch /users/{id} -> patchUser deprecated")
        assert route.method == "PATCH"
        assert route.deprecated is True

    def test_route_requires_path(self):
        assert parse_annotation('!GET -> getUsers "x"') is None

    def test_query_param(self):
        param = parse_annotation('!query limit:integer "Number of results" default=10')
        assert param.location == "query"
        assert (param.name, param.type, param.default) == ("limit", "integer", "10")
        assert param.required is False

    def test_header_defaults_to_string(self):
        param = parse_annotation('!header X-Request-ID "Correlation" required')
        assert (param.name, param.type, param.required) == ("X-Request-ID", "string", True)

    def test_body(self):
        body = parse_annotation('!body CreateUserRequest "User data" required')
        assert (body.schema_ref, body.description, body.required) == ("CreateUserRequest", "User data", True)

    def test_ok_defaults_to_200(self):
        ok = parse_annotation('!ok User[] "Successful response"')
        assert (ok.status, ok.schema_ref) == ("200", "User[]")

    def test_ok_with_status(self):
        ok = parse_annotation('!ok 201 User "Created"')
        assert (ok.status, ok.schema_ref, ok.description) == ("201", "User", "Created")

    def test_error_requires_status(self):
        assert parse_annotation('!error Error "Oops"') is None
        err = parse_annotation('!error 500 - "Server error"')
        assert (err.status, err.schema_ref) == ("500", "-")

    def test_secure_names(self):
        assert parse_annotation("!secure bearer, apiKey oauth").names == ("bearer", "apiKey", "oauth")


class TestModelVerbs:
    def test_model_description_only(self):
        model = parse_annotation('!model "A user"')
        assert (model.name, model.description) == ("", "A user")

    def test_named_model(self):
        assert parse_annotation('!model Error "Error payload"').name == "Error"

    def test_field(self):
        field = parse_annotation('!field name:string "User name" required example="John Doe" enum=a,b')
        assert (field.name, field.type, field.description) == ("name", "string", "User name")
        assert field.required is True
        assert field.example == "John Doe"
        assert field.enum == ("a", "b")


class TestCleanDescription:
    def test_strips_annotation_lines(self):
        assert clean_description("Retrieves users.\n\n!GET /users\n!ok User") == "Retrieves users."

    def test_empty(self):
        assert clean_description(None) == ""
        assert clean_description("!model") == ""
