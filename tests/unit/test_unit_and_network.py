import math
from io import StringIO

import numpy as np
import pytest

from backpropnet.core.activations import sigmoid
from backpropnet.core.errors import FileError, OutOfRangeError, ReadError
from backpropnet.core.network import Network
from backpropnet.core.rng import make_rng
from backpropnet.core.unit import Unit


def test_unit_output_is_sigmoid_of_weighted_sum():
    unit = Unit(2, make_rng(0))
    unit.set_weights([0.0, 1.0, 1.0])
    unit.set_inputs([0.0, 1.0])
    assert unit.compute_output() == pytest.approx(0.7310586, abs=1e-7)
    assert unit.last_output == pytest.approx(1 / (1 + math.exp(-1)))
    assert unit.get_last_input(0) == 1.0


def test_unit_random_weights_on_grid_and_nonzero():
    unit = Unit(50, make_rng(3))
    weights = unit.weights
    assert weights.shape == (51,)
    assert np.all(np.abs(weights) <= 0.7)
    assert np.all(weights != 0.0)
    assert np.allclose(weights * 1000, np.round(weights * 1000))


def test_unit_mismatched_vectors_are_ignored():
    unit = Unit(2, make_rng(0))
    before = unit.weights
    unit.set_weights([1.0, 2.0])
    unit.set_inputs([1.0, 2.0, 3.0])
    np.testing.assert_array_equal(unit.weights, before)
    assert unit.get_last_input(1) == 0.0


def test_unit_index_checks():
    unit = Unit(2, make_rng(0))
    with pytest.raises(OutOfRangeError):
        unit.set_weight(3, 0.1)
    with pytest.raises(IndexError):
        unit.get_weight(-1)
    with pytest.raises(OutOfRangeError):
        unit.set_input(0, 1.0)
    with pytest.raises(OutOfRangeError):
        unit.get_last_input(3)
    unit.sum_to_weight(1, 0.25)
    unit.set_weight(2, 0.5)
    assert unit.get_weight(2) == 0.5


def test_unit_line_round_trip_is_exact():
    unit = Unit(3, make_rng(9))
    unit.sum_to_weight(0, 1e-3 / 3)
    line = unit.to_line()
    assert line.startswith("4,")
    assert "e" in line.split(",")[1]
    clone = Unit.from_line(line)
    np.testing.assert_array_equal(clone.weights, unit.weights)
    assert clone.n_inputs == 3


@pytest.mark.parametrize("line", ["3", "3,0.1,0.2", "2,a,b", "x,0.1"])
def test_unit_from_bad_line(line):
    with pytest.raises(ReadError):
        Unit.from_line(line)


def test_network_sizes():
    net = Network(3, [4, 2], make_rng(0))
    assert net.n_inputs == 3
    assert net.n_outputs == 2
    assert net.n_layers == 2
    assert net.n_hidden_layers == 1
    assert net.n_units() == 6
    assert net.n_units(0) == 4
    assert net.n_hidden_units == 4
    assert net.n_weights(0, 0) == 4
    assert net.n_weights(1, 1) == 5
    assert net.parameter_count() == 4 * 4 + 2 * 5
    assert net.describe().layer_dims == [3, 4, 2]


def test_network_rejects_bad_topology():
    with pytest.raises(ValueError):
        Network(2, [])
    with pytest.raises(ValueError):
        Network(2, [3, 0])


def test_network_forward_matches_hand_computation():
    net = Network(2, [1, 1], make_rng(0))
    for idx, value in enumerate([0.0, 1.0, 1.0]):
        net.set_weight(0, 0, idx, value)
    net.set_weight(1, 0, 0, 0.0)
    net.set_weight(1, 0, 1, 1.0)
    net.set_inputs([0.0, 1.0])
    outputs = net.compute()
    hidden = sigmoid(1.0)
    assert net.get_unit_output(0, 0) == pytest.approx(hidden)
    assert outputs[0] == pytest.approx(sigmoid(hidden))
    assert net.get_output(0) == pytest.approx(sigmoid(hidden))
    assert net.get_unit_input(1, 0, 1) == pytest.approx(hidden)


def test_network_outputs_stay_in_open_interval():
    net = Network(4, [6, 3, 2], make_rng(1))
    net.set_inputs([0.3, -1.0, 2.0, 0.5])
    outputs = net.compute()
    assert np.all((outputs > 0.0) & (outputs < 1.0))


def test_network_sum_to_weight():
    net = Network(2, [2, 1], make_rng(0))
    old = net.get_weight(1, 0, 2)
    net.sum_to_weight(1, 0, 2, 0.125)
    assert net.get_weight(1, 0, 2) == pytest.approx(old + 0.125)


def test_network_range_checks():
    net = Network(2, [2, 1], make_rng(0))
    with pytest.raises(OutOfRangeError):
        net.set_input(2, 1.0)
    with pytest.raises(OutOfRangeError):
        net.get_output(1)
    with pytest.raises(OutOfRangeError):
        net.get_weight(2, 0, 0)
    with pytest.raises(OutOfRangeError):
        net.get_weight(0, 2, 0)
    with pytest.raises(OutOfRangeError):
        net.get_unit_input(0, 0, 3)
    with pytest.raises(OutOfRangeError):
        net.layer_size(5)
    net.set_inputs([1.0])
    np.testing.assert_array_equal(net.inputs, [0.0, 0.0])


def test_network_file_format():
    net = Network(3, [4, 2], make_rng(0))
    lines = net.to_text().splitlines()
    assert lines[:6] == [
        "# number of inputs",
        "3",
        "# number of layers",
        "2",
        "# units for any layer",
        "4,2",
    ]
    assert lines[6] == "# units layer 0"
    assert lines[11] == "# units layer 1"
    assert len(lines) == 14


def test_network_round_trip(tmp_path):
    net = Network(3, [4, 2], make_rng(5))
    path = tmp_path / "model.txt"
    net.save(path)
    loaded = Network.load(path)
    assert loaded.describe() == net.describe()
    for key, value in net.state_dict().items():
        np.testing.assert_array_equal(loaded.state_dict()[key], value)

    net.set_inputs([0.1, 0.2, 0.3])
    loaded.set_inputs([0.1, 0.2, 0.3])
    np.testing.assert_array_equal(net.compute(), loaded.compute())


@pytest.mark.parametrize(
    "text",
    [
        "",
        "2\n2\n3\n",
        "1\n2\n1,1\n2,0.1,0.2\n",
        "1\n2\n1,1\n2,0.1,0.2\n3,0.1,0.2,0.3\n",
        "1\n1\n1\n2,0.1,zz\n",
    ],
)
def test_network_read_rejects_corrupt_models(text):
    with pytest.raises(ReadError):
        Network.read(StringIO(text))


def test_network_read_skips_comments_and_blanks():
    text = "# inputs\n\n1\n# layers\n2\n1,1\n\n# layer 0\n2,0.1,0.2\n# layer 1\n2,0.3,0.4\n"
    net = Network.read(StringIO(text))
    assert net.get_weight(1, 0, 1) == pytest.approx(0.4)


def test_network_load_missing_file(tmp_path):
    with pytest.raises(FileError):
        Network.load(tmp_path / "missing.txt")


def test_network_load_rejects_invalid_utf8(tmp_path):
    path = tmp_path / "model.txt"
    path.write_bytes(b"# inputs\n2\n\xff\n")
    with pytest.raises(ReadError):
        Network.load(path)


def test_network_copy_and_reinitialize():
    net = Network(2, [3, 1], make_rng(0))
    clone = net.copy()
    clone.sum_to_weight(0, 0, 0, 1.0)
    assert clone.get_weight(0, 0, 0) == pytest.approx(net.get_weight(0, 0, 0) + 1.0)

    fresh = net.reinitialized(make_rng(1))
    assert fresh.describe() == net.describe()
    assert not np.array_equal(fresh.state_dict()["W0"], net.state_dict()["W0"])


def test_same_seed_same_initial_weights():
    a = Network(3, [5, 2], make_rng(42))
    b = Network(3, [5, 2], make_rng(42))
    assert a.to_text() == b.to_text()


def test_load_state_dict_checks_shapes():
    net = Network(2, [3, 1], make_rng(0))
    state = dict(net.state_dict())
    state["W1"] = np.zeros((1, 3))
    with pytest.raises(ValueError):
        net.load_state_dict(state)
    state.pop("W1")
    with pytest.raises(KeyError):
        net.load_state_dict(state)
