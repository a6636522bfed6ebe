import re


def parse_dimacs(text):
    '''
    Parse DIMACS CNF text into a list of clauses (lists of non-zero integers).

    A 0 closes a clause, so a lone 0 yields an empty clause. Clauses may span
    several lines; a clause left open at the end of the input is kept.
    Repeated literals inside a clause are collapsed, keeping the first one.
    '''
    clauses = []
    current = []
    for line in text.splitlines():
        line = line.strip()
        # SATLIB files end with a "%" line followed by a stray 0
        if line.startswith('%'):
            break
        if not line or line[0] in 'cp':
            continue
        for lit in map(int, re.findall(r'-?\d+', line)):
            if lit == 0:
                clauses.append(list(dict.fromkeys(current)))
                current = []
            else:
                current.append(lit)
    if current:
        clauses.append(list(dict.fromkeys(current)))
    return clauses


def read_cnf(path):
    with open(path) as f:
        return parse_dimacs(f.read())
