from termcolor import colored

_RULE = "---------------------------------------------------------------------------------------------------------"


def intro():
    ascii_art = r'''
                 _   _       _          _     _  ___   ____ ____
                | | | |_   _| |__  _ __(_) __| |/ _ \ / ___|  _ \
                | |_| | | | | '_ \| '__| |/ _` | | | | |   | |_) |
                |  _  | |_| | |_) | |  | | (_| | |_| | |___|  __/
                |_| |_|\__, |_.__/|_|  |_|\__,_|\___/ \____|_|
                       |___/
''' + _RULE + '''
                    Hybrid optimal control via sum-of-squares relaxations
''' + _RULE
    print(ascii_art)


def print_problem_summary(system, degree, settings):
    print(colored(f"Modes: {system.n_modes}   Transitions: {len(system.transitions)}   "
                  f"Relaxation degree: {degree}   Solver: {settings.cvx.solver}", "cyan"))
    for i, mode in enumerate(system.modes):
        label = mode.name or f"mode {i}"
        print(f"  [{i}] {label:<16} n={mode.n}  m={mode.m}  "
              f"target={'yes' if mode.target_set else 'no':<3}  "
              f"x0={'yes' if mode.initial_state is not None else 'no'}")
    for tr in system.transitions:
        print(f"  guard {tr.source} -> {tr.target}  "
              f"({'identity' if tr.reset is None else 'custom'} reset)")


def constraint_added(kind: str, mode: int, target: int = None):
    messages = {
        "liouville": "Adding Liouville dual constraint",
        "terminal": "Adding Final time constraint",
        "transition": "Adding transition constraint",
    }
    suffix = f" (mode {mode})" if target is None else f" (mode {mode} -> {target})"
    print(messages[kind] + suffix)


def print_diagnostics(records, invalid_grams):
    print(colored(_RULE))
    print("{:^4} | {:^11} | {:^7} | {:^5} | {:^12} | {:^12} | {:^14}".format(
        "#", "Constraint", "Mode", "SOS", "Residual max", "Residual sum", "Subresidual max"))
    print(colored(_RULE))
    for k, rec in enumerate(records):
        mode = f"{rec.mode}" if rec.target is None else f"{rec.mode}->{rec.target}"
        sub = max(rec.subresidual_max) if len(rec.subresidual_max) else 0.0
        print("{:^4} | {:^11} | {:^7} | {:^5} | {:^12.3e} | {:^12.3e} | {:^14.3e}".format(
            k, rec.kind, mode, rec.n_sos + 1, rec.residual_max, rec.residual_sum, sub))
    if len(invalid_grams):
        print(colored(f"Gram matrices with negative eigenvalues: {list(invalid_grams)}", "yellow"))
    else:
        print(colored("All Gram matrices are positive semidefinite", "green"))


def footer(computation_time, pval):
    print(colored(_RULE))
    BOLD = "\033[1m"
    RESET = "\033[0m"

    print("------------------------------------------------ " + BOLD + "RESULTS" + RESET + " ------------------------------------------------")
    print("Lower bound on optimal cost: ", pval)
    print("Total Computation Time: ", computation_time)
