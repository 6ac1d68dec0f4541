from textwrap import dedent

from bangdoc.parser.source import parse_source
from bangdoc.parser.state import SpecState
from bangdoc.parser.walker import DeclarationWalker, parse_value


def _walk(*texts: str) -> SpecState:
    state = SpecState()
    walker = DeclarationWalker(state)
    for index, text in enumerate(texts):
        walker.visit(parse_source(dedent(text), f"module_{index}.py"))
    return state


def _operation(state: SpecState, operation_id: str):
    return next(op for op in state.operations if op.operation_id == operation_id)


class TestParseValue:
    def test_json_values(self):
        assert parse_value("20") == 20
        assert parse_value("true") is True
        assert parse_value('{"a": 1}') == {"a": 1}

    def test_raw_fallback(self):
        assert parse_value("fluffy") == "fluffy"


class TestApiLevel:
    def test_module_docstring(self):
        state = _walk('''
            """Service.

            !api 3.1.0
            !info "Shop API" v2.0 "Sells things"
            !contact "Support" <help@shop.test>
            !license MIT
            !tos https://shop.test/tos
            !server https://shop.test "Production"
            !tag items "Item operations"
            !externaldocs https://shop.test/docs
            !link Changelog https://shop.test/changes
            """
        ''')
        assert state.version == "3.1.0"
        assert (state.info.title, state.info.version, state.info.description) == ("Shop API", "2.0", "Sells things")
        assert state.info.contact.email == "help@shop.test"
        assert state.info.license.name == "MIT"
        assert state.info.terms_of_service == "https://shop.test/tos"
        assert [(s.url, s.description) for s in state.servers] == [("https://shop.test", "Production")]
        assert [t.name for t in state.tags] == ["items"]
        assert state.external_docs.url == "https://shop.test/docs"
        assert [(link.label, link.url) for link in state.links] == [("Changelog", "https://shop.test/changes")]

    def test_info_overwrites_and_servers_append(self):
        state = _walk(
            '# !info "First" 1.0\n# !server https://one.test\n',
            '# !info "Second" 2.0\n# !server https://two.test\n',
        )
        assert state.info.title == "Second"
        assert [s.url for s in state.servers] == ["https://one.test", "https://two.test"]

    def test_api_lines_inside_routine_docs_are_applied(self):
        state = _walk('''
            def handler():
                """!server https://inner.test"""
        ''')
        assert [s.url for s in state.servers] == ["https://inner.test"]


class TestSecurity:
    def test_scheme_types(self):
        state = _walk('''
            # !security token http bearer format=JWT
            # !security key apiKey query api_key
            # !security oidc openIdConnect https://id.test/.well-known/openid-configuration
        ''')
        schemes = state.security_schemes
        assert (schemes["token"].scheme, schemes["token"].bearer_format) == ("bearer", "JWT")
        assert (schemes["key"].in_, schemes["key"].name) == ("query", "api_key")
        assert schemes["oidc"].open_id_connect_url == "https://id.test/.well-known/openid-configuration"

    def test_scopes_join_every_flow(self):
        state = _walk('''
            # !security oauth oauth2 password https://id.test/token
            # !scope oauth read:items "Read items"
        ''')
        flows = state.security_schemes["oauth"].flows
        assert flows.password.token_url == "https://id.test/token"
        assert flows.password.scopes == {"read:items": "Read items"}

    def test_scope_for_unknown_scheme_is_dropped(self):
        state = _walk('''
            # !scope missing read "Read"
            # !security token http bearer
            # !scope token read "Read"
        ''')
        assert list(state.security_schemes) == ["token"]
        assert state.security_schemes["token"].flows is None

    def test_redeclared_scheme_replaces_earlier(self):
        state = _walk('# !security token http basic\n', '# !security token http bearer\n')
        assert state.security_schemes["token"].scheme == "bearer"


class TestOperations:
    SOURCE = '''
        def list_items():
            """List items.

            More prose.

            !GET /items -> listItems "List items" #items
            !query limit:integer "Page size" default=20
            !ok []Item "The items"
            """


        def get_item():
            """!GET /items/{id} -> getItem
            !path id:integer
            !header X-Trace "Trace id"
            !error 404 -
            !ok 204
            !secure token, oauth
            """


        def no_route():
            """Mentions ! but has no route.

            !query q
            """
    '''

    def test_operation_record(self):
        op = _operation(_walk(self.SOURCE), "listItems")
        assert (op.method, op.path, op.summary, op.tags) == ("GET", "/items", "List items", ["items"])
        assert op.description == "List items.\n\nMore prose."
        [limit] = op.parameters
        assert (limit.name, limit.in_, limit.required, limit.example) == ("limit", "query", None, 20)
        assert limit.schema_.type == "integer"
        response = op.responses["200"]
        assert response.description == "The items"
        schema = response.content["application/json"].schema_
        assert schema.type == "array"
        assert schema.items.ref == "#/components/schemas/Item"

    def test_path_parameters_are_required(self):
        op = _operation(_walk(self.SOURCE), "getItem")
        path, header = op.parameters
        assert path.required is True
        assert header.required is None
        assert header.schema_.type == "string"

    def test_responses_without_body(self):
        op = _operation(_walk(self.SOURCE), "getItem")
        assert op.responses["404"].content is None
        assert op.responses["404"].description == "Not Found"
        assert op.responses["204"].description == "No Content"

    def test_security_requirements(self):
        op = _operation(_walk(self.SOURCE), "getItem")
        assert op.security == [{"token": []}, {"oauth": []}]

    def test_routine_without_route_is_dropped(self):
        assert [op.operation_id for op in _walk(self.SOURCE).operations] == ["listItems", "getItem"]


class TestRecords:
    SOURCE = '''
        from pydantic import BaseModel, Field


        class Item(BaseModel):
            """An item.

            !model
            !field count example=5
            !field code:string example=007
            !field owner example=1
            """

            id: int
            count: int = 0
            code: str
            owner: "Owner"
            secret: str = Field(exclude=True)
            display_name: str = Field(..., alias="displayName")
            """!field displayName "Shown to users" required"""


        # !model
        class Plain:
            pass


        class Skipped(BaseModel):
            value: int
    '''

    def _item(self):
        return _walk(self.SOURCE).global_schemas["Item"]

    def test_properties_and_required(self):
        schema = self._item().schema_
        assert list(schema.properties) == ["id", "count", "code", "owner", "displayName"]
        assert schema.required == ["id", "code", "owner", "displayName"]
        assert schema.description == "An item."

    def test_field_info_overrides(self):
        record = self._item()
        props = record.schema_.properties
        assert props["count"].example == 5
        assert props["code"].example == "007"
        assert props["displayName"].description == "Shown to users"
        assert record.examples == {"count": 5, "code": "007"}

    def test_reference_properties_take_no_example(self):
        owner = self._item().schema_.properties["owner"]
        assert owner.ref == "#/components/schemas/Owner"
        assert owner.example is None

    def test_only_annotated_classes(self):
        assert set(_walk(self.SOURCE).global_schemas) == {"Item", "Plain"}

    def test_enums_and_aliases_are_skipped(self):
        state = _walk('''
            from enum import Enum


            # !model
            class Color(Enum):
                RED = 1


            # !model
            Ids = list[int]
        ''')
        assert state.global_schemas == {}

    def test_first_declaration_wins(self):
        state = _walk(
            '# !model "First"\nclass Item:\n    a: int\n',
            '# !model "Second"\nclass Item:\n    b: int\n',
        )
        record = state.global_schemas["Item"]
        assert record.description == "First"
        assert list(record.schema_.properties) == ["a"]


class TestExplicitModels:
    def test_model_and_fields_from_comment_block(self):
        state = _walk('''
            # !model Error "Error payload"
            # !field code:integer "Machine code" required example=404
            # !field message "Human message"
        ''')
        schema = state.schemas["Error"].schema_
        assert schema.description == "Error payload"
        assert schema.properties["code"].format == "int32"
        assert schema.properties["code"].example == 404
        assert schema.properties["message"].description == "Human message"
        assert schema.required == ["code"]

    def test_first_explicit_model_wins(self):
        state = _walk('# !model Error "One"\n', '# !model Error "Two"\n')
        assert state.schemas["Error"].description == "One"

    def test_ignored_inside_routine_docs(self):
        state = _walk('''
            def handler():
                """!model Hidden"""
        ''')
        assert state.schemas == {}
