""" Exception types raised by the canvas and workflow layers. """


class WebBuilderError(ValueError):
    """ Base class for all builder errors. """


# -------------------------
# CANVAS
# -------------------------

class CanvasError(WebBuilderError):
    pass


class NotFoundError(CanvasError):
    """ An element id does not resolve to a node in the tree. """

    def __init__(self, element_id: str):
        super().__init__(f"Element not found: {element_id}")
        self.element_id = element_id


class InvalidParentError(CanvasError):
    """ The target parent cannot hold children (or not this type of child). """

    def __init__(self, parent_id: str, reason: str = "element cannot have children"):
        super().__init__(f"Invalid parent {parent_id}: {reason}")
        self.parent_id = parent_id


class UnknownElementTypeError(CanvasError):
    def __init__(self, element_type: str):
        super().__init__(f"Unknown element type: {element_type}")
        self.element_type = element_type


class CyclicMoveError(CanvasError):
    """ Attempt to move a node into itself or one of its descendants. """

    def __init__(self, element_id: str, target_parent_id: str):
        super().__init__(
            f"Cannot move {element_id} into {target_parent_id}: target is inside the moved subtree"
        )
        self.element_id = element_id
        self.target_parent_id = target_parent_id


class DuplicateElementIdError(CanvasError):
    def __init__(self, element_id: str):
        super().__init__(f"Element id already in tree: {element_id}")
        self.element_id = element_id


# -------------------------
# WORKFLOW
# -------------------------

class WorkflowError(WebBuilderError):
    pass


class UserCancelledError(WorkflowError):
    pass


class StepFailedError(WorkflowError):
    """ A step action reported failure. """

    def __init__(self, step_id: str, message: str):
        super().__init__(f"Step {step_id} failed: {message}")
        self.step_id = step_id


class StepTimeoutError(WorkflowError):
    def __init__(self, step_id: str, timeout: float):
        super().__init__(f"Step {step_id} exceeded its deadline of {timeout}s")
        self.step_id = step_id
        self.timeout = timeout


class InvalidTransitionError(WorkflowError):
    def __init__(self, plan_id: str, current: str, target: str):
        super().__init__(f"Plan {plan_id} cannot move from '{current}' to '{target}'")
        self.plan_id = plan_id
        self.current = current
        self.target = target
