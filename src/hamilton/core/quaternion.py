"""
===============================================================================
HAMILTON - Quaternion Value Type
===============================================================================

General quaternion implementation for rotation composition, interpolation and
conversion between rotation representations. Quaternions compose rotations
without the gimbal lock singularity of Euler angles and need only 4 numbers
(vs 9 for a rotation matrix).

Convention
----------
We use the scalar-last convention:

    q = [q_x, q_y, q_z, q_w] = q_x*i + q_y*j + q_z*k + q_w

where [q_x, q_y, q_z] is the vector (imaginary) part and q_w is the scalar
(real) part. A rotation by angle theta about the unit axis n is encoded as:

    q = [sin(theta/2) * n, cos(theta/2)]

Nothing is enforced on construction. A quaternion may have any norm,
including zero; "unit" and "identity" are properties checked on demand.

Mutability
----------
Every operation comes in two forms:

    q.add(p)      -> new Quaternion, q unchanged
    q.add_eq(p)   -> q updated in place, returns q

The pure form is always computed as copy() followed by the in-place form, so
both produce bit-identical components for identical inputs. The in-place
forms also back the augmented operators (+=, -=, *=, /=).

Degenerate Cases
----------------
    exp()                 zero vector part  -> (0, 0, 0, e^w)
    get_rotation_axis()   zero angle        -> zero vector
    from_axis_angle*()    zero-length axis  -> identity
    log()                 zero norm         -> ArithmeticError
    normalize()/invert()  zero norm         -> ZeroDivisionError, or
                                               non-finite components when
                                               zero_norm_policy="propagate"

Euler Angle Convention
----------------------
Roll (phi) about X, pitch (theta) about Y, yaw (psi) about Z, composed as

    q = q_z(yaw) * q_y(pitch) * q_x(roll)

i.e. the aerospace 3-2-1 (ZYX) sequence.

References
----------
    [1] Markley & Crassidis, "Fundamentals of Spacecraft Attitude
        Determination and Control", Springer, 2014.
    [2] Kuipers, "Quaternions and Rotation Sequences", Princeton, 1999.
    [3] Diebel, "Representing Attitude: Euler Angles, Unit Quaternions, and
        Rotation Vectors", Stanford, 2006.

===============================================================================
"""

import logging
import numbers
from typing import Iterator, Optional, Sequence, Tuple, Union

import numpy as np

from hamilton.core.config import get_settings
from hamilton.core.constants import (
    DEG2RAD, HASH_MULTIPLIER, HASH_SEED, RAD2DEG, ZERO_NORM_RAISE
)


logger = logging.getLogger(__name__)

_MASK_32 = 0xFFFFFFFF

VectorLike = Union[Sequence[float], np.ndarray]


def _as_vector3(v: Optional[VectorLike], name: str) -> np.ndarray:
    """
    Validate a 3-vector argument and return it as a float64 array.

    Raises
    ------
    TypeError
        If v is None.
    ValueError
        If v does not hold exactly three elements.
    """
    if v is None:
        raise TypeError(f"{name} must be a 3-element vector, got None")

    arr = np.asarray(v, dtype=np.float64)
    if arr.shape != (3,):
        raise ValueError(
            f"{name} must have exactly 3 elements, got shape {arr.shape}"
        )
    return arr


def _check_interpolation_parameter(t: float) -> float:
    t = float(t)
    if not 0.0 <= t <= 1.0:
        raise ValueError(f"Interpolation parameter must be in [0, 1], got {t}")
    return t


def _guard_zero_norm(value: float, action: str) -> None:
    """Apply the zero-norm policy before dividing by a norm."""
    if value != 0.0:
        return

    if get_settings().zero_norm_policy == ZERO_NORM_RAISE:
        raise ZeroDivisionError(
            f"Cannot {action} a zero quaternion (norm = 0)."
        )
    logger.warning("Zero-norm quaternion in %s; result is non-finite", action)


class Quaternion:
    """
    Quaternion value type for 3D rotations and general quaternion algebra.

    A unit quaternion q = [x, y, z, w] parameterizes a rotation by angle
    theta about unit axis n as:

        q = [sin(theta/2) * n_x, sin(theta/2) * n_y, sin(theta/2) * n_z,
             cos(theta/2)]

    Non-unit quaternions are fully supported: the rotation helpers divide
    by the norm internally.

    Attributes
    ----------
    x : float
        First imaginary component (i-axis).
    y : float
        Second imaginary component (j-axis).
    z : float
        Third imaginary component (k-axis).
    w : float
        Scalar (real) component.

    Examples
    --------
    >>> q = Quaternion()  # Identity rotation
    >>> q_rot = Quaternion.from_axis_angle([0.0, 0.0, 1.0], 90.0)
    >>> v_rotated = q_rot.rotate([1.0, 0.0, 0.0])
    """

    def __init__(self, x: float = 0.0, y: float = 0.0, z: float = 0.0,
                 w: float = 1.0) -> None:
        """
        Initialize a quaternion from its four components.

        The defaults give the identity quaternion (0, 0, 0, 1). No
        normalization or validation is applied.

        Parameters
        ----------
        x, y, z : float
            Vector part.
        w : float
            Scalar part.
        """
        self._q = np.array([x, y, z, w], dtype=np.float64)

    # =========================================================================
    # PROPERTIES - Read access to quaternion components
    # =========================================================================

    @property
    def x(self) -> float:
        """First imaginary component (i-axis)."""
        return float(self._q[0])

    @property
    def y(self) -> float:
        """Second imaginary component (j-axis)."""
        return float(self._q[1])

    @property
    def z(self) -> float:
        """Third imaginary component (k-axis)."""
        return float(self._q[2])

    @property
    def w(self) -> float:
        """Scalar (real) part of the quaternion."""
        return float(self._q[3])

    @property
    def scalar(self) -> float:
        """Scalar part of the quaternion (alias for w)."""
        return self.w

    @property
    def vector(self) -> np.ndarray:
        """
        Vector (imaginary) part of the quaternion as a 3-element array.

        Returns
        -------
        np.ndarray
            Copy of [x, y, z].
        """
        return self._q[0:3].copy()

    @property
    def components(self) -> np.ndarray:
        """
        Full quaternion as a 4-element numpy array [x, y, z, w].

        Returns
        -------
        np.ndarray
            Copy of the internal quaternion array.
        """
        return self._q.copy()

    # =========================================================================
    # COPYING
    # =========================================================================

    def copy(self) -> 'Quaternion':
        """Return an independent quaternion with identical components."""
        result = Quaternion.__new__(Quaternion)
        result._q = self._q.copy()
        return result

    def __copy__(self) -> 'Quaternion':
        return self.copy()

    def __deepcopy__(self, memo) -> 'Quaternion':
        return self.copy()

    # =========================================================================
    # NORM AND NORMALIZATION
    # =========================================================================

    def squared_norm(self) -> float:
        """Return x^2 + y^2 + z^2 + w^2."""
        return float(np.dot(self._q, self._q))

    def norm(self) -> float:
        """
        L2 norm (magnitude) of the quaternion.

        Returns
        -------
        float
            Euclidean norm sqrt(x^2 + y^2 + z^2 + w^2).
        """
        return float(np.sqrt(self.squared_norm()))

    def normalize(self) -> 'Quaternion':
        """
        Scale this quaternion in place to unit norm.

        Returns
        -------
        Quaternion
            self, to allow chaining.

        Raises
        ------
        ZeroDivisionError
            If the norm is zero and the zero-norm policy is "raise".
        """
        n = self.norm()
        _guard_zero_norm(n, "normalize")

        with np.errstate(divide='ignore', invalid='ignore'):
            self._q /= n
        return self

    def to_unit(self) -> 'Quaternion':
        """Alias of normalize()."""
        return self.normalize()

    def normalized(self) -> 'Quaternion':
        """Return a unit-norm copy, leaving this quaternion unchanged."""
        return self.copy().normalize()

    def is_unit(self, tolerance: Optional[float] = None) -> bool:
        """
        Check if this quaternion has unit norm.

        Parameters
        ----------
        tolerance : float, optional
            Acceptable deviation from 1.0. Defaults to the configured epsilon.

        Returns
        -------
        bool
            True if |norm - 1| < tolerance.
        """
        if tolerance is None:
            tolerance = get_settings().epsilon
        return abs(self.norm() - 1.0) < tolerance

    def is_identity(self, tolerance: Optional[float] = None) -> bool:
        """
        Check if this quaternion is the identity (0, 0, 0, 1).

        Both the squared norm and the scalar part must be within tolerance
        of 1.0.
        """
        if tolerance is None:
            tolerance = get_settings().epsilon
        return (abs(self.squared_norm() - 1.0) < tolerance
                and abs(self.w - 1.0) < tolerance)

    def equals(self, other: Optional['Quaternion'], threshold: float) -> bool:
        """
        Tolerance-based comparison.

        Parameters
        ----------
        other : Quaternion or None
            Quaternion to compare against. None never matches.
        threshold : float
            Every component difference must be strictly below this value.

        Returns
        -------
        bool
            True if all four components agree within threshold.
        """
        if other is None:
            return False
        return bool(np.all(np.abs(self._q - other._q) < threshold))

    # =========================================================================
    # QUATERNION ARITHMETIC
    # =========================================================================

    def conjugate_eq(self) -> 'Quaternion':
        """Negate the vector part in place."""
        self._q[0:3] = -self._q[0:3]
        return self

    def conjugate(self) -> 'Quaternion':
        """
        Return the quaternion conjugate.

        For q = [x, y, z, w], the conjugate is q* = [-x, -y, -z, w].

        For unit quaternions, the conjugate equals the inverse and represents
        the reverse rotation.
        """
        return self.copy().conjugate_eq()

    def add_eq(self, other: 'Quaternion') -> 'Quaternion':
        """Add another quaternion component-wise, in place."""
        self._q += other._q
        return self

    def add(self, other: 'Quaternion') -> 'Quaternion':
        """
        Component-wise sum of two quaternions.

        This is NOT a rotation operation: it is used by interpolation and
        numerical integration schemes. Addition is commutative.
        """
        return self.copy().add_eq(other)

    def subtract_eq(self, other: 'Quaternion') -> 'Quaternion':
        """Subtract another quaternion component-wise, in place."""
        self._q -= other._q
        return self

    def subtract(self, other: 'Quaternion') -> 'Quaternion':
        """Component-wise difference self - other."""
        return self.copy().subtract_eq(other)

    def multiply_eq(self, other: Union['Quaternion', float]) -> 'Quaternion':
        """
        Multiply in place by a quaternion (Hamilton product) or a scalar.

        See multiply() for the product formula.
        """
        if isinstance(other, Quaternion):
            x1, y1, z1, w1 = self._q
            x2, y2, z2, w2 = other._q

            # Hamilton product self * other
            x = w1 * x2 + x1 * w2 + y1 * z2 - z1 * y2
            y = w1 * y2 - x1 * z2 + y1 * w2 + z1 * x2
            z = w1 * z2 + x1 * y2 - y1 * x2 + z1 * w2
            w = w1 * w2 - x1 * x2 - y1 * y2 - z1 * z2

            self._q = np.array([x, y, z, w], dtype=np.float64)
        elif isinstance(other, numbers.Real):
            self._q *= float(other)
        else:
            raise TypeError(
                f"Cannot multiply a Quaternion by {type(other).__name__}"
            )
        return self

    def multiply(self, other: Union['Quaternion', float]) -> 'Quaternion':
        """
        Multiply this quaternion by another (Hamilton product) or a scalar.

        Quaternion multiplication is NOT commutative: q1 * q2 != q2 * q1
        in general. The product self * other rotates a vector first by
        'other' and then by 'self'.

        The Hamilton product formula is:

            w = w1*w2 - x1*x2 - y1*y2 - z1*z2
            x = w1*x2 + x1*w2 + y1*z2 - z1*y2
            y = w1*y2 - x1*z2 + y1*w2 + z1*x2
            z = w1*z2 + x1*y2 - y1*x2 + z1*w2

        A real scalar scales all four components.

        Parameters
        ----------
        other : Quaternion or float
            The right-hand operand.

        Returns
        -------
        Quaternion
            The product self * other.
        """
        return self.copy().multiply_eq(other)

    def invert(self) -> 'Quaternion':
        """
        Replace this quaternion by its inverse, in place.

        Raises
        ------
        ZeroDivisionError
            If the norm is zero and the zero-norm policy is "raise".
        """
        norm_sq = self.squared_norm()
        _guard_zero_norm(norm_sq, "invert")

        self.conjugate_eq()
        with np.errstate(divide='ignore', invalid='ignore'):
            self._q /= norm_sq
        return self

    def inverse_eq(self) -> 'Quaternion':
        """Alias of invert()."""
        return self.invert()

    def inverse(self) -> 'Quaternion':
        """
        Return the quaternion inverse.

            q^{-1} = q* / |q|^2

        so that q * q^{-1} = q^{-1} * q = identity. For a unit quaternion
        this equals the conjugate.
        """
        return self.copy().invert()

    def divide_eq(self, other: 'Quaternion') -> 'Quaternion':
        """Right-divide in place: self = self * other^{-1}."""
        return self.multiply_eq(other.inverse())

    def divide(self, other: 'Quaternion') -> 'Quaternion':
        """
        Right division self * other^{-1}.

        The order matters: this is not other^{-1} * self.
        """
        return self.copy().divide_eq(other)

    # =========================================================================
    # EXPONENTIAL AND LOGARITHM
    # =========================================================================

    def exp_eq(self) -> 'Quaternion':
        """Replace this quaternion by its exponential, in place."""
        v = self._q[0:3]
        v_norm = float(np.linalg.norm(v))
        e_w = np.exp(self._q[3])

        if v_norm < get_settings().epsilon:
            # Direction of the vector part is undefined: pure real exponential
            logger.debug("exp() of quaternion with zero vector part")
            self._q = np.array([0.0, 0.0, 0.0, e_w], dtype=np.float64)
            return self

        vec = v * (np.sin(v_norm) / v_norm) * e_w
        self._q = np.array([vec[0], vec[1], vec[2], np.cos(v_norm) * e_w],
                           dtype=np.float64)
        return self

    def exp(self) -> 'Quaternion':
        """
        Quaternion exponential.

        For q = [v, w] with n = |v|:

            exp(q) = e^w * [v * sin(n) / n, cos(n)]

        When n is below epsilon the result is the real exponential
        (0, 0, 0, e^w).
        """
        return self.copy().exp_eq()

    def log_eq(self) -> 'Quaternion':
        """Replace this quaternion by its logarithm, in place."""
        eps = get_settings().epsilon
        q_norm = self.norm()

        if q_norm < eps:
            raise ArithmeticError(
                f"Logarithm of a near-zero quaternion is undefined "
                f"(norm = {q_norm:.2e})."
            )

        v = self._q[0:3]
        v_norm = float(np.linalg.norm(v))

        if v_norm < eps:
            vec = np.zeros(3)
        else:
            # Clamp to [-1, 1] to protect against floating-point overshoot in arccos
            angle = np.arccos(np.clip(self._q[3] / q_norm, -1.0, 1.0))
            vec = v * (angle / v_norm)

        self._q = np.array([vec[0], vec[1], vec[2], np.log(q_norm)],
                           dtype=np.float64)
        return self

    def log(self) -> 'Quaternion':
        """
        Quaternion natural logarithm (principal branch).

        For q = [v, w]:

            log(q) = [v / |v| * arccos(w / |q|), ln|q|]

        The vector part is zero when |v| is below epsilon.

        Raises
        ------
        ArithmeticError
            If |q| is below epsilon.

        Notes
        -----
        exp(log(q)) recovers q for any q with non-zero norm and vector part.
        """
        return self.copy().log_eq()

    # =========================================================================
    # ROTATION OPERATIONS
    # =========================================================================

    def get_rotation_matrix(self) -> np.ndarray:
        """
        Rotation matrix of this (not necessarily unit) quaternion.

        Each entry is divided by the squared norm s = |q|^2, so any non-zero
        multiple of a unit quaternion yields the same matrix:

            R = 1/s * | s-2(y^2+z^2)   2(xy-wz)       2(xz+wy)     |
                      | 2(xy+wz)       s-2(x^2+z^2)   2(yz-wx)     |
                      | 2(xz-wy)       2(yz+wx)       s-2(x^2+y^2) |

        Returns
        -------
        np.ndarray
            3x3 row-major rotation matrix.
        """
        x, y, z, w = self._q
        norm_sq = self.squared_norm()
        _guard_zero_norm(norm_sq, "build a rotation matrix from")

        # Pre-compute products that appear multiple times
        xx = x * x
        yy = y * y
        zz = z * z
        xy = x * y
        xz = x * z
        yz = y * z
        wx = w * x
        wy = w * y
        wz = w * z

        matrix = np.array([
            [norm_sq - 2.0 * (yy + zz),  2.0 * (xy - wz),            2.0 * (xz + wy)],
            [2.0 * (xy + wz),            norm_sq - 2.0 * (xx + zz),  2.0 * (yz - wx)],
            [2.0 * (xz - wy),            2.0 * (yz + wx),            norm_sq - 2.0 * (xx + yy)]
        ], dtype=np.float64)

        with np.errstate(divide='ignore', invalid='ignore'):
            return matrix / norm_sq

    def rotate(self, vector: VectorLike) -> np.ndarray:
        """
        Rotate a 3D vector by this quaternion.

        Equivalent to the sandwich product q * [v, 0] * q^{-1}, evaluated
        as the matrix product R @ v.

        Parameters
        ----------
        vector : array_like
            3-element vector to rotate.

        Returns
        -------
        np.ndarray
            Rotated 3-element vector.

        Raises
        ------
        TypeError
            If vector is None.
        ValueError
            If vector does not have exactly 3 elements.
        """
        v = _as_vector3(vector, "vector")
        return self.get_rotation_matrix() @ v

    def get_angle_rad(self) -> float:
        """
        Rotation angle in radians, in [0, 2*pi].

        Computed on a normalized copy as angle = 2 * atan2(|v|, w). atan2
        stays accurate near 0 and pi where arccos(w) loses precision.
        """
        unit = self.normalized()
        return float(2.0 * np.arctan2(np.linalg.norm(unit._q[0:3]), unit._q[3]))

    def get_angle(self) -> float:
        """Rotation angle in degrees, in [0, 360]."""
        return self.get_angle_rad() * RAD2DEG

    def get_rotation_axis(self) -> np.ndarray:
        """
        Unit rotation axis.

        For q = |q| * [sin(theta/2) * n, cos(theta/2)] the axis is
        n = v / (|q| * sin(theta/2)).

        Returns
        -------
        np.ndarray
            3-element axis. The zero vector when the rotation angle is
            below epsilon, where the axis is undefined.
        """
        angle = self.get_angle_rad()

        if abs(angle) > get_settings().epsilon:
            return self.vector / (self.norm() * np.sin(angle / 2.0))

        logger.debug("Rotation axis requested for a zero rotation")
        return np.zeros(3)

    def to_euler_angles(self) -> Tuple[float, float, float]:
        """
        Convert to 3-2-1 (ZYX) Euler angles.

        The inverse of from_euler_angles():

            roll  = atan2(2*(w*x + y*z), 1 - 2*(x^2 + y^2))
            pitch = arcsin(2*(w*y - z*x))
            yaw   = atan2(2*(w*z + x*y), 1 - 2*(y^2 + z^2))

        evaluated on a normalized copy.

        Returns
        -------
        tuple of (float, float, float)
            (roll, pitch, yaw) in radians. roll and yaw in [-pi, pi],
            pitch in [-pi/2, pi/2].

        Warnings
        --------
        At pitch = +/-pi/2 (gimbal lock) roll and yaw are coupled and only
        their sum/difference is recoverable.
        """
        x, y, z, w = self.normalized()._q

        sinr_cosp = 2.0 * (w * x + y * z)
        cosr_cosp = 1.0 - 2.0 * (x * x + y * y)
        roll = np.arctan2(sinr_cosp, cosr_cosp)

        # Clamp to [-1, 1] to prevent NaN from arcsin due to float rounding
        sinp = np.clip(2.0 * (w * y - z * x), -1.0, 1.0)
        pitch = np.arcsin(sinp)

        siny_cosp = 2.0 * (w * z + x * y)
        cosy_cosp = 1.0 - 2.0 * (y * y + z * z)
        yaw = np.arctan2(siny_cosp, cosy_cosp)

        return (float(roll), float(pitch), float(yaw))

    # =========================================================================
    # STATIC FACTORY METHODS
    # =========================================================================

    @staticmethod
    def identity() -> 'Quaternion':
        """
        Create the identity quaternion (0, 0, 0, 1).

        The identity represents zero rotation and is the multiplicative
        identity element: q * identity = q for any quaternion q.
        """
        return Quaternion(0.0, 0.0, 0.0, 1.0)

    @staticmethod
    def from_axis_angle_rad(axis: VectorLike, angle: float) -> 'Quaternion':
        """
        Create a quaternion from an axis and an angle in radians.

            q = [sin(angle/2) * n, cos(angle/2)],  n = axis / |axis|

        Parameters
        ----------
        axis : array_like
            3-element rotation axis. Normalized internally; the caller's
            array is left untouched.
        angle : float
            Rotation angle in radians.

        Returns
        -------
        Quaternion
            Unit quaternion for the rotation, or the identity when the axis
            length is below epsilon.

        Raises
        ------
        TypeError
            If axis is None.
        ValueError
            If axis does not have exactly 3 elements.
        """
        axis = _as_vector3(axis, "axis")
        axis_norm = np.linalg.norm(axis)

        if axis_norm < get_settings().epsilon:
            logger.debug("Zero-length rotation axis; returning identity")
            return Quaternion.identity()

        n = axis / axis_norm

        # Half-angle encoding
        half_angle = angle / 2.0
        sin_half = np.sin(half_angle)

        return Quaternion(sin_half * n[0], sin_half * n[1], sin_half * n[2],
                          np.cos(half_angle))

    @staticmethod
    def from_axis_angle(axis: VectorLike, angle: float) -> 'Quaternion':
        """
        Create a quaternion from an axis and an angle in degrees.

        See from_axis_angle_rad() for details.
        """
        return Quaternion.from_axis_angle_rad(axis, angle * DEG2RAD)

    @staticmethod
    def from_euler_angles(roll: float, pitch: float, yaw: float) -> 'Quaternion':
        """
        Create a quaternion from 3-2-1 (ZYX) Euler angles.

        The closed form of q = q_z(yaw) * q_y(pitch) * q_x(roll), where each
        single-axis quaternion is:

            q_x(a) = [sin(a/2), 0, 0, cos(a/2)]
            q_y(a) = [0, sin(a/2), 0, cos(a/2)]
            q_z(a) = [0, 0, sin(a/2), cos(a/2)]

        Parameters
        ----------
        roll : float
            Rotation about the X-axis (radians).
        pitch : float
            Rotation about the Y-axis (radians).
        yaw : float
            Rotation about the Z-axis (radians).

        Returns
        -------
        Quaternion
            Unit quaternion equivalent to the Euler angle sequence.
        """
        # Half-angles (each trig function called once)
        c_roll  = np.cos(roll / 2.0)
        s_roll  = np.sin(roll / 2.0)
        c_pitch = np.cos(pitch / 2.0)
        s_pitch = np.sin(pitch / 2.0)
        c_yaw   = np.cos(yaw / 2.0)
        s_yaw   = np.sin(yaw / 2.0)

        x = s_roll * c_pitch * c_yaw - c_roll * s_pitch * s_yaw
        y = c_roll * s_pitch * c_yaw + s_roll * c_pitch * s_yaw
        z = c_roll * c_pitch * s_yaw - s_roll * s_pitch * c_yaw
        w = c_roll * c_pitch * c_yaw + s_roll * s_pitch * s_yaw

        return Quaternion(x, y, z, w)

    @staticmethod
    def from_rotation_matrix(matrix: np.ndarray) -> 'Quaternion':
        """
        Create a unit quaternion from a 3x3 rotation matrix.

        Uses Shepperd's method: the largest of the four diagonal quantities

            d_w = 1 + trace(R)           -> 4*w^2
            d_x = 1 + 2*R[0,0] - trace   -> 4*x^2
            d_y = 1 + 2*R[1,1] - trace   -> 4*y^2
            d_z = 1 + 2*R[2,2] - trace   -> 4*z^2

        gives the first component, and the off-diagonal elements give the
        rest. This stays well conditioned near 180-degree rotations, where
        the trace-only formula breaks down.

        Parameters
        ----------
        matrix : np.ndarray
            3x3 proper orthogonal matrix (R^T R = I, det = +1).

        Returns
        -------
        Quaternion
            Unit quaternion whose get_rotation_matrix() reproduces matrix.

        Raises
        ------
        ValueError
            If matrix is not a 3x3 orthogonal matrix.
        """
        if matrix is None:
            raise TypeError("matrix must be a 3x3 array, got None")

        dcm = np.asarray(matrix, dtype=np.float64)

        if dcm.shape != (3, 3):
            raise ValueError(f"Rotation matrix must be 3x3, got shape {dcm.shape}")

        orthogonality_error = np.linalg.norm(dcm.T @ dcm - np.eye(3))
        if orthogonality_error > 1e-6:
            raise ValueError(
                f"Input matrix is not orthogonal (error = {orthogonality_error:.2e}). "
                "Ensure the matrix satisfies R^T R = I."
            )

        trace = np.trace(dcm)

        d_w = 1.0 + trace
        d_x = 1.0 + 2.0 * dcm[0, 0] - trace
        d_y = 1.0 + 2.0 * dcm[1, 1] - trace
        d_z = 1.0 + 2.0 * dcm[2, 2] - trace

        d_max = max(d_w, d_x, d_y, d_z)

        if d_max == d_w:
            w = 0.5 * np.sqrt(d_w)
            scale = 0.25 / w
            x = (dcm[2, 1] - dcm[1, 2]) * scale
            y = (dcm[0, 2] - dcm[2, 0]) * scale
            z = (dcm[1, 0] - dcm[0, 1]) * scale
        elif d_max == d_x:
            x = 0.5 * np.sqrt(d_x)
            scale = 0.25 / x
            w = (dcm[2, 1] - dcm[1, 2]) * scale
            y = (dcm[0, 1] + dcm[1, 0]) * scale
            z = (dcm[0, 2] + dcm[2, 0]) * scale
        elif d_max == d_y:
            y = 0.5 * np.sqrt(d_y)
            scale = 0.25 / y
            w = (dcm[0, 2] - dcm[2, 0]) * scale
            x = (dcm[0, 1] + dcm[1, 0]) * scale
            z = (dcm[1, 2] + dcm[2, 1]) * scale
        else:
            z = 0.5 * np.sqrt(d_z)
            scale = 0.25 / z
            w = (dcm[1, 0] - dcm[0, 1]) * scale
            x = (dcm[0, 2] + dcm[2, 0]) * scale
            y = (dcm[1, 2] + dcm[2, 1]) * scale

        return Quaternion(x, y, z, w).normalize()

    @staticmethod
    def random(rng: Optional[np.random.Generator] = None) -> 'Quaternion':
        """
        Generate a uniformly random unit quaternion.

        Uses the subgroup algorithm (Shoemake, 1992). Normalizing a random
        4-vector does NOT produce a uniform rotation distribution.

        Parameters
        ----------
        rng : np.random.Generator, optional
            Random number generator. If None, a fresh default generator.

        Returns
        -------
        Quaternion
            Random unit quaternion.
        """
        if rng is None:
            rng = np.random.default_rng()

        u1, u2, u3 = rng.random(3)

        sqrt_u1 = np.sqrt(u1)
        sqrt_1_minus_u1 = np.sqrt(1.0 - u1)

        return Quaternion(
            sqrt_1_minus_u1 * np.cos(2.0 * np.pi * u2),
            sqrt_u1 * np.sin(2.0 * np.pi * u3),
            sqrt_u1 * np.cos(2.0 * np.pi * u3),
            sqrt_1_minus_u1 * np.sin(2.0 * np.pi * u2),
        )

    # =========================================================================
    # INTERPOLATION
    # =========================================================================

    @staticmethod
    def lerp(start: 'Quaternion', end: 'Quaternion', t: float) -> 'Quaternion':
        """
        Linear interpolation start + (end - start) * t.

        The result is not renormalized; call normalize() on it for NLERP.

        Parameters
        ----------
        start : Quaternion
            Value at t=0.
        end : Quaternion
            Value at t=1.
        t : float
            Interpolation parameter in [0, 1].

        Raises
        ------
        ValueError
            If t is outside [0, 1].
        """
        t = _check_interpolation_parameter(t)
        return start.add(end.subtract(start).multiply_eq(t))

    @staticmethod
    def slerp(start: 'Quaternion', end: 'Quaternion', t: float) -> 'Quaternion':
        """
        Spherical Linear Interpolation (SLERP) between two rotations.

        Both endpoints are normalized first. The formula is:

            slerp(q1, q2, t) = q1 * sin((1-t)*Omega) / sin(Omega)
                              + q2 * sin(t*Omega) / sin(Omega)

        where Omega = arccos(q1 . q2).

        Notes
        -----
        - Always interpolates along the SHORT arc: if q1 . q2 < 0, q2 is
          negated first (q and -q represent the same rotation).
        - For nearly parallel endpoints falls back to normalized linear
          interpolation to avoid dividing by sin(Omega) ~ 0.

        Raises
        ------
        ValueError
            If t is outside [0, 1].
        """
        t = _check_interpolation_parameter(t)

        q1 = start.normalized()._q
        q2 = end.normalized()._q

        dot = np.dot(q1, q2)
        if dot < 0.0:
            q2 = -q2
            dot = -dot

        dot = np.clip(dot, 0.0, 1.0)

        if dot > 0.9995:
            result = q1 + t * (q2 - q1)
            return Quaternion(*result).normalize()

        omega = np.arccos(dot)
        sin_omega = np.sin(omega)

        scale1 = np.sin((1.0 - t) * omega) / sin_omega
        scale2 = np.sin(t * omega) / sin_omega

        return Quaternion(*(scale1 * q1 + scale2 * q2))

    # =========================================================================
    # OPERATOR OVERLOADS
    # =========================================================================

    def __add__(self, other: 'Quaternion') -> 'Quaternion':
        if isinstance(other, Quaternion):
            return self.add(other)
        return NotImplemented

    def __iadd__(self, other: 'Quaternion') -> 'Quaternion':
        if isinstance(other, Quaternion):
            return self.add_eq(other)
        return NotImplemented

    def __sub__(self, other: 'Quaternion') -> 'Quaternion':
        if isinstance(other, Quaternion):
            return self.subtract(other)
        return NotImplemented

    def __isub__(self, other: 'Quaternion') -> 'Quaternion':
        if isinstance(other, Quaternion):
            return self.subtract_eq(other)
        return NotImplemented

    def __mul__(self, other: Union['Quaternion', float]) -> 'Quaternion':
        """
        Multiplication operator.

        - Quaternion * Quaternion -> Hamilton product
        - Quaternion * scalar -> component-wise scaling
        """
        if isinstance(other, (Quaternion, numbers.Real)):
            return self.multiply(other)
        return NotImplemented

    def __rmul__(self, other: float) -> 'Quaternion':
        """Right-multiplication by a scalar: scalar * Quaternion."""
        if isinstance(other, numbers.Real):
            return self.multiply(other)
        return NotImplemented

    def __imul__(self, other: Union['Quaternion', float]) -> 'Quaternion':
        if isinstance(other, (Quaternion, numbers.Real)):
            return self.multiply_eq(other)
        return NotImplemented

    def __truediv__(self, other: Union['Quaternion', float]) -> 'Quaternion':
        """
        Division operator.

        - Quaternion / Quaternion -> self * other^{-1}
        - Quaternion / scalar -> component-wise scaling by 1/scalar
        """
        if isinstance(other, Quaternion):
            return self.divide(other)
        if isinstance(other, numbers.Real):
            return self.multiply(1.0 / other)
        return NotImplemented

    def __itruediv__(self, other: Union['Quaternion', float]) -> 'Quaternion':
        if isinstance(other, Quaternion):
            return self.divide_eq(other)
        if isinstance(other, numbers.Real):
            return self.multiply_eq(1.0 / other)
        return NotImplemented

    def __neg__(self) -> 'Quaternion':
        """
        Negate all components.

        Note: -q represents the same rotation as q.
        """
        return self.multiply(-1.0)

    def __pos__(self) -> 'Quaternion':
        return self.copy()

    def _bit_pattern(self) -> np.ndarray:
        # NaNs are folded to one canonical pattern, like Double.doubleToLongBits
        canonical = np.where(np.isnan(self._q), np.nan, self._q)
        return canonical.view(np.uint64)

    def __eq__(self, other: object) -> bool:
        """
        Exact equality.

        Two quaternions are equal when each component has the same IEEE-754
        bit pattern, so 0.0 != -0.0 and NaN equals NaN. Use equals() for
        tolerance-based comparison.
        """
        if not isinstance(other, Quaternion):
            return NotImplemented
        return bool(np.array_equal(self._bit_pattern(), other._bit_pattern()))

    def __hash__(self) -> int:
        """
        Hash consistent with __eq__.

        Folds each component's 64-bit pattern to 32 bits and combines them
        in x, y, z, w order with seed 13 and multiplier 31.

        Quaternions are mutable: do not mutate one while it is a dict key
        or set member.
        """
        result = HASH_SEED
        for bits in self._bit_pattern().tolist():
            folded = (bits ^ (bits >> 32)) & _MASK_32
            result = (HASH_MULTIPLIER * result + folded) & _MASK_32
        return result

    def __iter__(self) -> Iterator[float]:
        """Iterate over (x, y, z, w)."""
        return iter(self._q.tolist())

    def __len__(self) -> int:
        return 4

    def __getitem__(self, index: int) -> float:
        """Component access in (x, y, z, w) order."""
        return float(self._q[index])

    def __repr__(self) -> str:
        """
        Unambiguous string representation for debugging.

        Format: Quaternion(x=..., y=..., z=..., w=...)
        """
        return (f"Quaternion(x={self.x:+.8f}, y={self.y:+.8f}, "
                f"z={self.z:+.8f}, w={self.w:+.8f})")

    def __str__(self) -> str:
        """
        Human-readable string representation.

        Shows the components and, when defined, the equivalent rotation
        angle for quick interpretation.
        """
        text = (f"[{self.x:+.6f}, {self.y:+.6f}, {self.z:+.6f}, "
                f"{self.w:+.6f}]")
        if self.squared_norm() > 0.0 and np.all(np.isfinite(self._q)):
            text += f" (rot={self.get_angle():.2f} deg)"
        return text
