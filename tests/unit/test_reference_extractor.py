"""
Reference Extractor Tests

Test Coverage:
- Declaration order, dedup, self-reference drop
- Empty interfaces
- Malformed input
- Interface hash stability
"""

import pytest

from contract_graph.domain.exceptions import MalformedInterfaceError
from contract_graph.domain.interface_models import InterfaceDescription
from contract_graph.domain.models import ContractReference, ReferenceKind
from contract_graph.infrastructure.extractor import extract, interface_hash, parse_interface


class TestExtract:
    """extract() happy paths"""

    def test_walks_imports_clients_interfaces_in_order(self):
        refs = extract(
            {
                "contract_id": "CTOKEN",
                "interfaces": [{"contract_id": "CSEP41"}],
                "clients": [{"contract_id": "CORACLE"}],
                "imports": [{"contract_id": "CLIB", "constraint": "^1.0"}],
            }
        )

        assert refs == (
            ContractReference("CLIB", ReferenceKind.IMPORT),
            ContractReference("CORACLE", ReferenceKind.CLIENT),
            ContractReference("CSEP41", ReferenceKind.INTERFACE),
        )
        assert refs[0].constraint == "^1.0"

    def test_duplicate_target_and_kind_collapse(self):
        refs = extract(
            {
                "contract_id": "X",
                "clients": [{"contract_id": "Y"}, {"contract_id": "Y", "constraint": "2.0"}],
            }
        )

        assert refs == (ContractReference("Y", ReferenceKind.CLIENT),)
        # first declaration wins
        assert refs[0].constraint == "*"

    def test_same_target_different_kinds_are_distinct(self):
        refs = extract({"contract_id": "X", "imports": ["Y"], "clients": ["Y"]})

        assert [r.kind for r in refs] == [ReferenceKind.IMPORT, ReferenceKind.CLIENT]

    def test_self_reference_dropped(self):
        refs = extract({"contract_id": "X", "clients": ["X", "Y"], "interfaces": ["X"]})

        assert refs == (ContractReference("Y", ReferenceKind.CLIENT),)

    def test_zero_references(self):
        assert extract({"contract_id": "X"}) == ()

    def test_accepts_validated_model(self):
        description = InterfaceDescription(contract_id="X", imports=["Y"])
        assert extract(description) == (ContractReference("Y", ReferenceKind.IMPORT),)

    def test_repeated_calls_are_identical(self):
        raw = {"contract_id": "X", "imports": ["A", "B"], "clients": ["C"]}
        assert extract(raw) == extract(raw)


class TestMalformed:
    """MalformedInterfaceError cases"""

    def test_not_a_mapping(self):
        with pytest.raises(MalformedInterfaceError):
            extract(["contract_id", "X"])

    def test_missing_contract_id(self):
        with pytest.raises(MalformedInterfaceError) as exc_info:
            extract({"imports": ["Y"]})
        assert exc_info.value.field == "contract_id"

    def test_blank_contract_id(self):
        with pytest.raises(MalformedInterfaceError):
            extract({"contract_id": "   "})

    def test_binding_without_identifier(self):
        with pytest.raises(MalformedInterfaceError) as exc_info:
            extract({"contract_id": "X", "clients": [{"name": "oracle"}]})
        assert exc_info.value.field == "clients.0.contract_id"

    def test_binding_list_wrong_type(self):
        with pytest.raises(MalformedInterfaceError):
            extract({"contract_id": "X", "imports": "Y"})

    def test_node_id_separator_in_own_id(self):
        with pytest.raises(MalformedInterfaceError) as exc_info:
            extract({"contract_id": "X@1"})
        assert exc_info.value.field == "contract_id"

    def test_node_id_separator_in_binding(self):
        with pytest.raises(MalformedInterfaceError) as exc_info:
            extract({"contract_id": "X", "imports": ["LIB@2"]})
        assert exc_info.value.field == "imports.0.contract_id"

    def test_error_details(self):
        with pytest.raises(MalformedInterfaceError) as exc_info:
            extract({})
        assert exc_info.value.to_dict()["code"] == "err_graph_malformed_interface"


class TestInterfaceHash:
    """Interface hash"""

    def test_stable_across_key_order(self):
        a = parse_interface({"contract_id": "X", "imports": ["Y"], "name": "n"})
        b = parse_interface({"name": "n", "imports": ["Y"], "contract_id": "X"})
        assert interface_hash(a) == interface_hash(b)

    def test_changes_with_references(self):
        a = parse_interface({"contract_id": "X", "imports": ["Y"]})
        b = parse_interface({"contract_id": "X", "imports": ["Z"]})
        assert interface_hash(a) != interface_hash(b)
        assert len(interface_hash(a)) == 64
