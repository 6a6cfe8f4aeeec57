"""Integer-program cross-check of DP optima with Gurobi.

Each function formulates the knapsack variant directly as an IP, so the DP
result can be verified by an independent method:
- solve_01_ip: binary selection
- solve_bounded_ip: integer copies with an upper bound per item
- solve_unbounded_ip: integer copies without upper bound
"""
try:
    import gurobipy as gp
    from gurobipy import GRB
except Exception:
    gp = None
    GRB = None


def _require_gurobi():
    if gp is None:
        raise RuntimeError("gurobipy is not available. Make sure Gurobi is installed and the Python environment is correct.")


def _solve_knapsack_ip(name, items, capacity, vtype, upper_bounds, time_limit, verbose):
    _require_gurobi()
    n = len(items)

    model = gp.Model(name)
    model.setParam('OutputFlag', 1 if verbose else 0)
    if time_limit is not None:
        model.setParam('TimeLimit', time_limit)

    x = {i: model.addVar(vtype=vtype, lb=0.0, ub=upper_bounds[i], name=f"x_{i}") for i in range(n)}
    model.update()

    model.addConstr(gp.quicksum(items[i].weight * x[i] for i in range(n)) <= capacity, name="capacity")
    model.setObjective(gp.quicksum(items[i].value * x[i] for i in range(n)), GRB.MAXIMIZE)

    model.optimize()

    status = model.Status
    if status == GRB.OPTIMAL:
        sol = [int(round(x[i].X)) for i in range(n)]
        return {"x": sol, "obj": int(round(model.ObjVal)), "status": status}
    return {"status": status, "message": "No optimal solution or model failed"}


def solve_01_ip(items, capacity, time_limit=None, verbose=False):
    """Solve the 0/1 knapsack as a binary IP.

    Args:
        items: Objects with .weight and .value
        capacity: Weight bound
        time_limit: Optional Gurobi time limit in seconds
        verbose: Whether to show Gurobi output

    Returns:
        dict with keys x (0/1 per item), obj and status, or status and
        message when no optimum was proven

    Raises:
        RuntimeError: If gurobipy is not available
    """
    _require_gurobi()
    return _solve_knapsack_ip("knapsack_01", items, capacity, GRB.BINARY,
                              [1.0] * len(items), time_limit, verbose)


def solve_bounded_ip(items, capacity, time_limit=None, verbose=False):
    """Solve the bounded knapsack (item.count copies at most) as an integer IP."""
    _require_gurobi()
    return _solve_knapsack_ip("knapsack_bounded", items, capacity, GRB.INTEGER,
                              [float(it.count) for it in items], time_limit, verbose)


def solve_unbounded_ip(items, capacity, time_limit=None, verbose=False):
    """Solve the unbounded (complete) knapsack as an integer IP."""
    _require_gurobi()
    return _solve_knapsack_ip("knapsack_unbounded", items, capacity, GRB.INTEGER,
                              [GRB.INFINITY] * len(items), time_limit, verbose)
