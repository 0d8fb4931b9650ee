"""
Feed-Forward Neural Network
===========================

A dense feed-forward network written directly on numpy, with hand-written
derivatives. It approximates Q-values for the deep Q-learner.

Calculation:
    nodes[i + 1] = activator_i(weights[i] @ nodes[i] + biases[i])

    weights[i] has shape (len(nodes[i + 1]), len(nodes[i])) and is indexed
    w[end node, start node].

Derivatives:
    Two independent ways to get training derivatives. Both read the node
    values cached by the most recent forward pass.

    1. Recursive node derivatives (slow, reference):
       d node / d weight, d node / d bias and d node / d node, each built
       with the chain rule over the previous layer and memoized per forward
       pass. Used as a correctness oracle.

    2. Closed-form backpropagation (fast, used for training):
       Loss = sum((output - compare)^2)
       d Loss / d output = 2 * (output - compare)
       Walk the layers backwards, multiplying the row gradient by the
       diagonal activation Jacobian, taking the outer product with the layer
       input for the weight derivatives and multiplying by the weights to
       move one layer back.

Caches:
    Every cached derivative is a function of the last forward pass and the
    current parameters. The forward pass, gradient descent and every setter
    clear them.
"""

from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from .activations import ActivationFunction, Sigmoid
from ..utils.logger import get_logger


logger = get_logger(__name__)


class NetworkShapeError(ValueError):
    """Raised when vectors, indices or networks don't match a network's shape."""


class ForwardPassRequiredError(RuntimeError):
    """Raised when node derivatives are queried before any forward pass."""


class LayerTransform:
    """
    Everything needed to move from one layer to the next.

        output_layer = activator(weights @ input_layer + biases)

    Attributes:
        weights: (n_out, n_in) matrix, w[end node, start node]
        biases: (n_out,) vector, one bias per end node
        activator: Activation function, or None for identity
    """

    def __init__(
        self,
        weights: np.ndarray,
        biases: np.ndarray,
        activator: Optional[ActivationFunction] = None
    ):
        weights = np.array(weights, dtype=np.float64)
        biases = np.array(biases, dtype=np.float64)
        if weights.ndim != 2:
            raise NetworkShapeError(f"Weights must be a matrix, got shape {weights.shape}")
        if biases.shape != (weights.shape[0],):
            raise NetworkShapeError(
                f"Biases must have length {weights.shape[0]} to match weights {weights.shape}, "
                f"got shape {biases.shape}"
            )
        self.weights = weights
        self.biases = biases
        self.activator = activator

    @property
    def input_size(self) -> int:
        return self.weights.shape[1]

    @property
    def output_size(self) -> int:
        return self.weights.shape[0]

    def transform_layer(self, input: np.ndarray, output: np.ndarray) -> None:
        """
        Map the input layer onto the output layer.

        Args:
            input: Values of the start layer
            output: Buffer for the end layer, overwritten in place
        """
        pre_activation = self.weights @ input + self.biases
        if self.activator is None:
            output[:] = pre_activation
        else:
            output[:] = self.activator.activate(pre_activation)

    def activation_derivative(self, y):
        """Activator derivative at activated value y (1 without an activator)."""
        if self.activator is None:
            return np.ones_like(y) if isinstance(y, np.ndarray) else 1.0
        return self.activator.activation_derivative(y)

    def clone(self) -> 'LayerTransform':
        """Independent copy of weights and biases, same (stateless) activator."""
        return LayerTransform(self.weights.copy(), self.biases.copy(), self.activator)


class NeuralNet:
    """
    Dense feed-forward network with one shared width for all middle layers.

    Layers:
        nodes[0]                  input layer (num_input_nodes)
        nodes[1..L-1]             middle layers (num_middle_nodes each)
        nodes[L]                  output layer (num_output_nodes)

    Example:
        >>> net = NeuralNet(256, 50, 4, 2, ReLUWithSlopes(0.1, 0.001),
        ...                 output_activator=NoActivation())
        >>> q_values = net.get_output_values(features)
        >>> net.perform_gradient_descent(features, desired_q_values)
    """

    DEFAULT_ALPHA = 0.01

    def __init__(
        self,
        num_input_nodes: int,
        num_middle_nodes: int,
        num_output_nodes: int,
        num_middle_layers: int,
        activator: Optional[ActivationFunction] = None,
        output_activator: Optional[ActivationFunction] = None,
        rng: Optional[np.random.Generator] = None
    ):
        """
        Build a network with normally distributed random weights and biases.

        Args:
            num_input_nodes: Number of nodes in the input layer
            num_middle_nodes: Number of nodes in every middle layer
            num_output_nodes: Number of nodes in the output layer
            num_middle_layers: Number of middle (hidden) layers, may be 0
            activator: Activation for every transform (default Sigmoid)
            output_activator: Activation for the last transform
                (default: same as activator)
            rng: Random source for the initial parameters
        """
        if min(num_input_nodes, num_output_nodes) < 1:
            raise NetworkShapeError("Input and output layers need at least one node")
        if num_middle_layers < 0:
            raise NetworkShapeError(f"Middle layer count can't be negative, got {num_middle_layers}")
        if num_middle_layers > 0 and num_middle_nodes < 1:
            raise NetworkShapeError("Middle layers need at least one node")

        rng = rng if rng is not None else np.random.default_rng()
        activator = activator if activator is not None else Sigmoid()
        output_activator = output_activator if output_activator is not None else activator

        layer_sizes = (
            [num_input_nodes]
            + [num_middle_nodes] * num_middle_layers
            + [num_output_nodes]
        )

        self._layer_transforms: List[LayerTransform] = []
        for i in range(len(layer_sizes) - 1):
            n_in, n_out = layer_sizes[i], layer_sizes[i + 1]
            is_last = i == len(layer_sizes) - 2
            self._layer_transforms.append(LayerTransform(
                rng.standard_normal((n_out, n_in)),
                rng.standard_normal(n_out),
                output_activator if is_last else activator
            ))

        # Node buffers are reused by every forward pass
        self._nodes: List[np.ndarray] = [np.zeros(size) for size in layer_sizes]
        self._has_forward_pass = False

        self.alpha = self.DEFAULT_ALPHA

        self._node_to_weight_cache: Dict[Tuple[int, int, int, int, int], float] = {}
        self._node_to_bias_cache: Dict[Tuple[int, int, int, int], float] = {}
        self._node_to_node_cache: Dict[Tuple[int, int, int, int], float] = {}
        self._loss_to_weight_cache: Optional[List[np.ndarray]] = None
        self._loss_to_bias_cache: Optional[List[np.ndarray]] = None

    # =========================================================================
    # SHAPE
    # =========================================================================

    @property
    def layer_transforms(self) -> Tuple[LayerTransform, ...]:
        """The live transforms (not copies). The sequence itself is fixed."""
        return tuple(self._layer_transforms)

    @property
    def nodes(self) -> List[np.ndarray]:
        """Copies of the node values from the last forward pass."""
        return [n.copy() for n in self._nodes]

    @property
    def num_input_nodes(self) -> int:
        return len(self._nodes[0])

    @property
    def num_middle_nodes(self) -> int:
        return len(self._nodes[-2])

    @property
    def num_output_nodes(self) -> int:
        return len(self._nodes[-1])

    @property
    def num_middle_layers(self) -> int:
        return len(self._nodes) - 2

    def get_weights(self) -> List[np.ndarray]:
        """Copies of every weight matrix, first layer first."""
        return [t.weights.copy() for t in self._layer_transforms]

    def get_biases(self) -> List[np.ndarray]:
        """Copies of every bias vector, first layer first."""
        return [t.biases.copy() for t in self._layer_transforms]

    def count_parameters(self) -> int:
        """Return total number of trainable parameters."""
        return sum(t.weights.size + t.biases.size for t in self._layer_transforms)

    # =========================================================================
    # FORWARD PASS
    # =========================================================================

    def get_output_values(self, input: Sequence[float]) -> np.ndarray:
        """
        Propagate an input vector through the network.

        Overwrites the cached node values and clears all derivative caches.

        Args:
            input: Input layer values, length num_input_nodes

        Returns:
            Copy of the output layer values
        """
        input = np.asarray(input, dtype=np.float64)
        if input.shape != self._nodes[0].shape:
            raise NetworkShapeError(
                f"Input should have length {self.num_input_nodes}, got shape {input.shape}"
            )

        self.reset_derivative_caches()
        self._nodes[0][:] = input
        for i, transform in enumerate(self._layer_transforms):
            transform.transform_layer(self._nodes[i], self._nodes[i + 1])
        self._has_forward_pass = True

        return self._nodes[-1].copy()

    # =========================================================================
    # PARAMETER MUTATION
    # =========================================================================

    def set_weight(self, start_layer: int, start_node: int, end_node: int, value: float) -> None:
        """Set the weight from nodes[start_layer][start_node] to nodes[start_layer + 1][end_node]."""
        weights = self._transform(start_layer).weights
        if not (0 <= end_node < weights.shape[0] and 0 <= start_node < weights.shape[1]):
            raise NetworkShapeError(
                f"Weight ({end_node}, {start_node}) is outside layer {start_layer} "
                f"weights of shape {weights.shape}"
            )
        weights[end_node, start_node] = value
        self.reset_derivative_caches()

    def set_bias(self, start_layer: int, end_node: int, value: float) -> None:
        """Set the bias added to nodes[start_layer + 1][end_node]."""
        biases = self._transform(start_layer).biases
        if not 0 <= end_node < len(biases):
            raise NetworkShapeError(
                f"Bias {end_node} is outside layer {start_layer} biases of length {len(biases)}"
            )
        biases[end_node] = value
        self.reset_derivative_caches()

    def set_activator(self, start_layer: int, activator: Optional[ActivationFunction]) -> None:
        """Set the activation of one transform (None for identity)."""
        self._transform(start_layer).activator = activator
        self.reset_derivative_caches()

    def _transform(self, start_layer: int) -> LayerTransform:
        if not 0 <= start_layer < len(self._layer_transforms):
            raise NetworkShapeError(
                f"Layer transform {start_layer} doesn't exist "
                f"(network has {len(self._layer_transforms)})"
            )
        return self._layer_transforms[start_layer]

    # =========================================================================
    # TRAINING
    # =========================================================================

    def perform_gradient_descent(self, input: Sequence[float], compare: Sequence[float]) -> None:
        """
        Adjust the weights towards the desired output for one example.

            weights[i] -= alpha * dLoss/dweights[i]
            biases[i]  -= alpha * dLoss/dbiases[i]

        Args:
            input: Input layer values
            compare: Desired output values
        """
        weight_derivatives, bias_derivatives = self.calculate_loss_derivatives(input, compare)

        for transform, d_weights, d_biases in zip(
            self._layer_transforms, weight_derivatives, bias_derivatives
        ):
            transform.weights -= self.alpha * d_weights
            transform.biases -= self.alpha * d_biases

        # Node derivatives described the old parameters; the loss derivatives
        # just applied stay readable until the next calculation
        self.reset_node_derivative_caches()

    def calculate_loss_derivatives(
        self,
        input: Sequence[float],
        compare: Sequence[float]
    ) -> Tuple[List[np.ndarray], List[np.ndarray]]:
        """
        Derivatives of the squared error loss with respect to every weight and bias.

        Loss = sum((output - compare)^2), so the gradient starts as
        2 * (output - compare). It is not halved or averaged.

        Args:
            input: Input layer values (a forward pass is run with them)
            compare: Desired output values

        Returns:
            (weight_derivatives, bias_derivatives), each shaped like the
            corresponding weights/biases so they can be subtracted directly
        """
        compare = np.asarray(compare, dtype=np.float64)
        if compare.shape != self._nodes[-1].shape:
            raise NetworkShapeError(
                f"Compare should have length {self.num_output_nodes}, got shape {compare.shape}"
            )

        output = self.get_output_values(input)

        num_transforms = len(self._layer_transforms)
        weight_derivatives: List[np.ndarray] = [None] * num_transforms  # type: ignore[list-item]
        bias_derivatives: List[np.ndarray] = [None] * num_transforms  # type: ignore[list-item]

        # dLoss/dnodes of the current layer as a 1 x n row
        node_derivatives = (2 * (output - compare))[np.newaxis, :]

        for layer in range(num_transforms - 1, -1, -1):
            transform = self._layer_transforms[layer]
            start_nodes = self._nodes[layer]
            end_nodes = self._nodes[layer + 1]

            # Jacobian of an elementwise activation is diagonal
            activation_jacobian = np.diag(transform.activation_derivative(end_nodes))
            pre_activation_derivatives = node_derivatives @ activation_jacobian

            # Column of pre-activation derivatives times the input row
            weight_derivatives[layer] = pre_activation_derivatives.T @ start_nodes[np.newaxis, :]
            bias_derivatives[layer] = pre_activation_derivatives[0].copy()

            node_derivatives = pre_activation_derivatives @ transform.weights

        self._loss_to_weight_cache = weight_derivatives
        self._loss_to_bias_cache = bias_derivatives

        return weight_derivatives, bias_derivatives

    def get_loss_to_weight_derivative(self, start_layer: int, end_node: int, start_node: int) -> Optional[float]:
        """
        dLoss/dweight from the last calculate_loss_derivatives() call.

        Returns:
            The derivative, or None if no derivatives are available
        """
        if self._loss_to_weight_cache is None:
            return None
        return float(self._loss_to_weight_cache[start_layer][end_node, start_node])

    def get_loss_to_bias_derivative(self, start_layer: int, end_node: int) -> Optional[float]:
        """
        dLoss/dbias from the last calculate_loss_derivatives() call.

        Returns:
            The derivative, or None if no derivatives are available
        """
        if self._loss_to_bias_cache is None:
            return None
        return float(self._loss_to_bias_cache[start_layer][end_node])

    # =========================================================================
    # RECURSIVE NODE DERIVATIVES
    # =========================================================================

    def get_node_to_weight_derivative(
        self,
        layer: int,
        node: int,
        w_start_layer: int,
        w_end_node: int,
        w_start_node: int
    ) -> float:
        """
        Derivative of nodes[layer][node] with respect to one weight.

        d(nodes[5][2]) / d(w[1][2, 3]) is get_node_to_weight_derivative(5, 2, 1, 2, 3).
        A forward pass must have been run first.

        Args:
            layer: Layer of the node being differentiated
            node: Index of that node within its layer
            w_start_layer: Layer the weight starts from
            w_end_node: End node of the weight (in layer w_start_layer + 1)
            w_start_node: Start node of the weight (in layer w_start_layer)
        """
        self._require_forward_pass()
        key = (layer, node, w_start_layer, w_end_node, w_start_node)
        cached = self._node_to_weight_cache.get(key)
        if cached is not None:
            return cached

        if layer == w_start_layer + 1:
            if w_end_node == node:
                # node = f(w * start + ...), d node/dw = f'(.) * start
                derivative = float(
                    self._layer_transforms[w_start_layer].activation_derivative(self._nodes[layer][node])
                    * self._nodes[layer - 1][w_start_node]
                )
            else:
                # This weight doesn't feed this node
                derivative = 0.0
        elif w_start_layer + 1 < layer:
            derivative = sum(
                self.get_node_to_node_derivative(layer, node, layer - 1, i)
                * self.get_node_to_weight_derivative(layer - 1, i, w_start_layer, w_end_node, w_start_node)
                for i in range(len(self._nodes[layer - 1]))
            )
        else:
            # The weight comes after this node
            return 0.0

        self._node_to_weight_cache[key] = derivative
        return derivative

    def get_node_to_bias_derivative(self, layer: int, node: int, b_start_layer: int, b_end_node: int) -> float:
        """
        Derivative of nodes[layer][node] with respect to one bias.

        A forward pass must have been run first.

        Args:
            layer: Layer of the node being differentiated
            node: Index of that node within its layer
            b_start_layer: Transform the bias belongs to
            b_end_node: Node the bias is added to (in layer b_start_layer + 1)
        """
        self._require_forward_pass()
        key = (layer, node, b_start_layer, b_end_node)
        cached = self._node_to_bias_cache.get(key)
        if cached is not None:
            return cached

        if layer == b_start_layer + 1:
            if b_end_node == node:
                derivative = float(
                    self._layer_transforms[b_start_layer].activation_derivative(self._nodes[layer][node])
                )
            else:
                derivative = 0.0
        elif b_start_layer + 1 < layer:
            derivative = sum(
                self.get_node_to_node_derivative(layer, node, layer - 1, i)
                * self.get_node_to_bias_derivative(layer - 1, i, b_start_layer, b_end_node)
                for i in range(len(self._nodes[layer - 1]))
            )
        else:
            return 0.0

        self._node_to_bias_cache[key] = derivative
        return derivative

    def get_node_to_node_derivative(self, end_layer: int, end_node: int, start_layer: int, start_node: int) -> float:
        """
        Derivative of nodes[end_layer][end_node] with respect to nodes[start_layer][start_node].

        A forward pass must have been run first.
        """
        self._require_forward_pass()
        key = (end_layer, end_node, start_layer, start_node)
        cached = self._node_to_node_cache.get(key)
        if cached is not None:
            return cached

        if end_layer == start_layer + 1:
            transform = self._layer_transforms[start_layer]
            derivative = float(
                transform.activation_derivative(self._nodes[end_layer][end_node])
                * transform.weights[end_node, start_node]
            )
        elif start_layer + 1 < end_layer:
            derivative = sum(
                self.get_node_to_node_derivative(end_layer, end_node, end_layer - 1, i)
                * self.get_node_to_node_derivative(end_layer - 1, i, start_layer, start_node)
                for i in range(len(self._nodes[end_layer - 1]))
            )
        else:
            return 0.0

        self._node_to_node_cache[key] = derivative
        return derivative

    def _require_forward_pass(self) -> None:
        if not self._has_forward_pass:
            raise ForwardPassRequiredError(
                "Node derivatives need a forward pass: call get_output_values() first"
            )

    # =========================================================================
    # CACHES AND COPIES
    # =========================================================================

    def reset_derivative_caches(self) -> None:
        """Forget every cached derivative."""
        self.reset_node_derivative_caches()
        self._loss_to_weight_cache = None
        self._loss_to_bias_cache = None

    def reset_node_derivative_caches(self) -> None:
        """Forget the node-to-weight, node-to-bias and node-to-node memos."""
        self._node_to_weight_cache = {}
        self._node_to_bias_cache = {}
        self._node_to_node_cache = {}

    def clone(self) -> 'NeuralNet':
        """
        Deep copy: transforms, node values and alpha.

        The clone shares no mutable state with this network (activators are
        stateless and shared by reference).
        """
        clone = NeuralNet.__new__(NeuralNet)
        clone._layer_transforms = [t.clone() for t in self._layer_transforms]
        clone._nodes = [n.copy() for n in self._nodes]
        clone._has_forward_pass = self._has_forward_pass
        clone.alpha = self.alpha
        clone.reset_derivative_caches()
        return clone

    def __repr__(self) -> str:
        return (
            f"NeuralNet(input={self.num_input_nodes}, middle={self.num_middle_nodes}"
            f"x{self.num_middle_layers}, output={self.num_output_nodes}, alpha={self.alpha})"
        )
