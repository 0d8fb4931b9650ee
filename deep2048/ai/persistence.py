"""
Network Persistence
===================

Saves and loads NeuralNet parameters as plain text, one value per line:

    line 1      number of input nodes
    line 2      width of the middle layers
    line 3      number of output nodes
    line 4      number of middle layers
    weights     every layer transform in order, end-node rows outer,
                start-node columns inner
    biases      every layer transform in order
    activations (optional) one description per layer transform,
                e.g. "ReLUWithSlopes 0.1 0.001"

Files without the activation lines load with the activators passed to
load_network(), then its fallback activators, then Sigmoid.
"""

import os
from typing import Dict, List, Optional, TypeVar

from ..utils.logger import log_model_event
from .activations import ActivationFunction, read_activation, write_activation
from .network import NeuralNet

K = TypeVar('K')

HEADER_LINES = 4


class NetworkFileError(ValueError):
    """Raised when a saved network file is malformed."""


def save_network(net: NeuralNet, path: str) -> None:
    """
    Write a network's shape, parameters and activations to a text file.

    Args:
        net: Network to save
        path: Destination file (parent directories are created)
    """
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)

    lines = [
        str(net.num_input_nodes),
        str(net.num_middle_nodes),
        str(net.num_output_nodes),
        str(net.num_middle_layers),
    ]
    for weights in net.get_weights():
        lines.extend(repr(float(value)) for value in weights.ravel())
    for biases in net.get_biases():
        lines.extend(repr(float(value)) for value in biases)
    for transform in net.layer_transforms:
        lines.append("NoActivation" if transform.activator is None else write_activation(transform.activator))

    with open(path, 'w') as f:
        f.write("\n".join(lines) + "\n")

    log_model_event('save', path, parameters=net.count_parameters())


def load_network(
    path: str,
    activator: Optional[ActivationFunction] = None,
    output_activator: Optional[ActivationFunction] = None,
    default_activator: Optional[ActivationFunction] = None,
    default_output_activator: Optional[ActivationFunction] = None
) -> NeuralNet:
    """
    Rebuild a network saved by save_network().

    Activators given here take priority over the ones stored in the file:
    activator for every transform but the last, output_activator for the
    last one. Files without activation lines use them like the NeuralNet
    constructor does, falling back to default_activator and
    default_output_activator where no override is given. The fallbacks never
    replace activations stored in the file.

    Args:
        path: File to read
        activator: Activation override for the middle transforms
        output_activator: Activation override for the output transform
        default_activator: Middle activation for files without activation lines
        default_output_activator: Output activation for files without activation lines

    Returns:
        The loaded network

    Raises:
        FileNotFoundError: If the file doesn't exist
        NetworkFileError: If the file is malformed or truncated
        UnknownActivationError: If an activation line names no known activation
    """
    with open(path, 'r') as f:
        lines = [line.strip() for line in f if line.strip()]

    if len(lines) < HEADER_LINES:
        raise NetworkFileError(f"{path}: expected {HEADER_LINES} header lines, found {len(lines)}")

    try:
        num_input, num_middle, num_output, num_layers = (int(line) for line in lines[:HEADER_LINES])
    except ValueError as e:
        raise NetworkFileError(f"{path}: bad header: {e}") from e

    net = NeuralNet(
        num_input, num_middle, num_output, num_layers,
        activator if activator is not None else default_activator,
        output_activator if output_activator is not None else default_output_activator,
    )

    shapes = [t.weights.shape for t in net.layer_transforms]
    num_weights = sum(rows * columns for rows, columns in shapes)
    num_biases = sum(rows for rows, _ in shapes)
    body = lines[HEADER_LINES:]
    num_values = num_weights + num_biases

    if len(body) < num_values:
        raise NetworkFileError(
            f"{path}: expected {num_values} weights and biases, found {len(body)} lines"
        )

    values = [_parse_float(path, line, HEADER_LINES + i + 1) for i, line in enumerate(body[:num_values])]

    position = 0
    for layer, (rows, columns) in enumerate(shapes):
        for end_node in range(rows):
            for start_node in range(columns):
                net.set_weight(layer, start_node, end_node, values[position])
                position += 1
    for layer, (rows, _) in enumerate(shapes):
        for end_node in range(rows):
            net.set_bias(layer, end_node, values[position])
            position += 1

    activation_lines = body[num_values:]
    if activation_lines:
        _restore_activators(path, net, activation_lines, activator, output_activator)

    log_model_event('load', path, parameters=net.count_parameters())
    return net


def _parse_float(path: str, text: str, line_number: int) -> float:
    try:
        return float(text)
    except ValueError as e:
        raise NetworkFileError(f"{path}:{line_number}: expected a number, got {text!r}") from e


def _restore_activators(
    path: str,
    net: NeuralNet,
    descriptions: List[str],
    activator: Optional[ActivationFunction],
    output_activator: Optional[ActivationFunction]
) -> None:
    num_transforms = len(net.layer_transforms)
    if len(descriptions) != num_transforms:
        raise NetworkFileError(
            f"{path}: expected {num_transforms} activation lines, found {len(descriptions)}"
        )

    for layer, description in enumerate(descriptions):
        is_last = layer == num_transforms - 1
        override = output_activator if is_last else activator
        if override is not None:
            continue
        net.set_activator(layer, read_activation(description))


def dictionary_dot_product(d1: Dict[K, float], d2: Dict[K, float]) -> float:
    """Sum of d1[k] * d2[k] over d1's keys, keys missing from d2 count as 0."""
    return sum(value * d2.get(key, 0.0) for key, value in d1.items())
