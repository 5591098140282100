"""Assembly of the generated CHR++ program: header, helpers, CHR block and main."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping, TextIO

from .model import IdCounter

_HEADER_INCLUDES = (
    "#include <iostream>",
    "#include <map>",
    "#include <string>",
    "#include <list>",
    "#include <regex>",
    "#include <chrpp.hh>",
    "#include <bt_interval.hh>",
    "#include <solvint.cpp>",
    "",
    "using namespace chr;",
    "using interval = chr::Interval<int, false>;",
    "using string = std::string;",
    "using list_var = std::list<chr::Logical_var<int>>;",
    "using list_int = std::list<int>;",
)

_DEFAULT_FUNCTIONS = "\n".join(
    (
        "template <typename T>",
        "void print_store(T& pb) {",
        "    auto it = pb.chr_store_begin();",
        "    while (!it.at_end()) {",
        "        std::cout << it.to_string() << std::endl;",
        "        ++it;",
        "    }",
        "}",
        "",
        "inline chr::ES_CHR maj_dom(chr::Logical_var_mutable<interval> &i, int val) {",
        "    bool modified = false;",
        "    return i.update_mutable(modified, [&modified, val](auto& intvl) {",
        "        modified = intvl.eq(val);",
        "    });",
        "}",
        "",
        "inline chr::ES_CHR set_eq(chr::Logical_var_mutable<interval> &x, int v) {",
        "    bool modified = false;",
        "    return x.update_mutable(modified, [&modified, v](auto& intvl1){",
        "        modified = intvl1.eq(v);",
        "    });",
        "}",
        "",
        "template <typename T> ",
        "void print_matrix(T& pb) {",
        '    std::regex re(R"(x\\[(\\d+)\\]\\[(\\d+)\\],\\s*(\\d+),)");',
        "    std::vector<std::tuple<int, int, int>> assignments;",
        "",
        "    int count = 0;",
        "    auto it = pb.chr_store_begin();",
        "",
        "    // Collecte des faits CspVarIntDec",
        "    while (!it.at_end()) {",
        "        std::string fact = it.to_string();",
        '        if (fact.find("CspVarIntDec") != std::string::npos) {',
        "            std::smatch match;",
        "            if (std::regex_search(fact, match, re)) {",
        "                int i = std::stoi(match[1].str());",
        "                int j = std::stoi(match[2].str());",
        "                int val = std::stoi(match[3].str());",
        "                assignments.emplace_back(i, j, val);",
        "                ++count;",
        "            }",
        "        }",
        "        ++it;",
        "    }",
        "",
        "    if (count == 0) {",
        '        std::cout << "Aucune variable CspVarIntDec trouvée."; ',
        "        return;",
        "    }",
        "",
        "    // Calcul de la dimension d",
        "    int d = std::sqrt(count);",
        "    if (d * d != count) {",
        "        std::cerr << \"Erreur : le nombre de variables (\" << count"
        " << \") n'est pas un carré parfait.\";",
        "        return;",
        "    }",
        "",
        "    // Initialisation de la grille",
        "    std::vector<std::vector<int>> grid(d, std::vector<int>(d, 0));",
        "    for (const auto& [i, j, val] : assignments) {",
        "        if (i >= 0 && i < d && j >= 0 && j < d)",
        "            grid[i][j] = val;",
        "    }",
        "",
        "    // Affichage uniforme de la grille",
        '    std::cout << "======= Matrice " << d << "x" << d << " =======" << std::endl;',
        "    for (int i = 0; i < d; ++i) {",
        "        for (int j = 0; j < d; ++j) {",
        "            std::cout << std::setw(4) << (grid[i][j] ? "
        'std::to_string(grid[i][j]) : ".");',
        "        }",
        '        std::cout << "\\n";',
        "    }",
        '    std::cout << "=============================";',
        "}",
        "",
    )
)


@dataclass
class CHRStruct:
    """The sections of a generated CHR++ program."""

    header: str = ""
    functions: str = ""
    chr_blocks: str = ""
    main_code: str = ""
    only_chr_blocks: bool = True

    @property
    def full_code(self) -> str:
        """The program text, or only the CHR block in CHR-only mode."""
        if self.only_chr_blocks:
            return self.chr_blocks + "\n"
        return (
            f"{self.header}\n\n{self.functions}\n\n{self.chr_blocks}\n{self.main_code}"
        )

    def generate_full_code(self, out: TextIO) -> None:
        """Write the program text to ``out``."""
        out.write(self.full_code)


@dataclass
class CHRStructBuilder:
    """Accumulates the pieces of a CHR++ program while an instance is read."""

    chrname: str = "defaultName"
    global_id_val: IdCounter = field(default_factory=IdCounter)
    build_call: str = ""
    build_init: str = ""
    build_instantiation: str = ""
    dom: bool = False
    trace: bool = False
    print_results: bool = False
    chr_code: CHRStruct = field(default_factory=CHRStruct)
    prefixe_op: str = "CspOp"

    @property
    def global_id(self) -> int:
        return self.global_id_val.value

    def enable_builder(self) -> None:
        """Produce the whole program rather than only the CHR block."""
        self.chr_code.only_chr_blocks = False

    def init(self) -> None:
        """Build the program header."""
        lines = [
            *_HEADER_INCLUDES,
            f"int global_id = {self.global_id};",
            "std::map<int, std::string> id_name_map;",
        ]
        self.chr_code.header = "\n".join(lines) + "\n"

    def set_chr_block(self, content: str) -> None:
        self.chr_code.chr_blocks = content

    def add_default_functions(self) -> None:
        """Put the store printing and domain helpers before other functions."""
        self.chr_code.functions = _DEFAULT_FUNCTIONS + self.chr_code.functions

    def add_linear_functions(self) -> None:
        """Append the helper that posts a linear sum as a chain of additions."""
        op = self.prefixe_op
        lines = (
            "template<class T>",
            "bool linear_post(T& space, const list_var& vars, const list_int& ids, int target) {",
            "    if (vars.size() < 2 || vars.size() != ids.size()) return false;",
            "    auto it = vars.begin();",
            "    auto id_it = ids.begin();",
            "    auto prev = *it++;",
            "    int id_prev = *id_it++;",
            "    for (; it != vars.end(); ++it, ++id_it) {",
            "        int tmp_id = global_id++;",
            "        Logical_var<int> tmpVar;",
            "        Logical_var_mutable<interval> tmpDom = interval(0, 1000);",
            "        CHECK_ES(space.CspTmpInt(",
            "            Logical_var_ground<int>(tmp_id), tmpVar, tmpDom));",
            f"        CHECK_ES(space.{op}plus(",
            "            Logical_var_ground<int>(id_prev), prev,",
            "            Logical_var_ground<int>(*id_it), *it,",
            "            Logical_var_ground<int>(tmp_id), tmpVar));",
            "        prev = tmpVar;",
            "        id_prev = tmp_id;",
            "    }",
            "    int final_id = global_id++;",
            "    Logical_var<int> finalVar;",
            "    Logical_var_mutable<interval> finalDom = interval(target, target);",
            "    CHECK_ES(space.CspTmpInt(",
            "        Logical_var_ground<int>(final_id), finalVar, finalDom));",
            f"    CHECK_ES(space.{op}eq(",
            "        Logical_var_ground<int>(id_prev), prev,",
            "        Logical_var_ground<int>(final_id), finalVar));",
            "    CHECK_ES(set_eq(finalDom, target));",
            "    return true;",
            "}",
        )
        self.chr_code.functions += "\n".join(lines) + "\n"

    def add_alldifferent_functions(self) -> None:
        """Append the helper that posts pairwise disequalities."""
        op = self.prefixe_op
        lines = (
            "template<class T>",
            "bool alldiff_post(T& space, const list_var& vars, const list_int& ids) {",
            "    auto it1 = vars.begin();",
            "    auto id1 = ids.begin();",
            "    for (; it1 != vars.end(); ++it1, ++id1) {",
            "        auto it2 = it1;",
            "        auto id2 = id1;",
            "        ++it2; ++id2;",
            "        for (; it2 != vars.end(); ++it2, ++id2) {",
            f"            CHECK_ES(space.{op}neq(chr::Logical_var_ground<int>(*id1), *it1, "
            "chr::Logical_var_ground<int>(*id2), *it2));",
            "        }",
            "    }",
            "    return true;",
            "}",
        )
        self.chr_code.functions += "\n".join(lines) + "\n"

    def generate_main_function(self, chr_name: str) -> None:
        """Build the ``main`` function that creates the space and runs it."""
        parts = ["int main(int argc, const char *argv[]) {\n"]
        if self.trace:
            parts.append("    TRACE(chr::Log::register_flags(chr::Log::ALL);)\n\n")
        parts.append(f"    auto space = {chr_name}::create();\n")
        parts.append(self.build_init)
        parts.append(self.build_instantiation)
        parts.append(f"CHR_RUN({self.build_call}); \n")
        if self.print_results:
            parts.extend(
                (
                    '    std::cout << " Contenu du store :";\n',
                    "    print_store(*space);\n",
                    '    std::cout << " Table des ids :" << std::endl;\n',
                    "    for (const auto& [id, name] : id_name_map) {\n",
                    '        std::cout << "  id=" << id << " : " << name << "\\n";\n',
                    "    }\n",
                )
            )
        parts.append("CHR_RUN(space->labelling(0);); \n")
        parts.append("chr::Statistics::print(std::cout);\n")
        parts.append("return 0;\n")
        parts.append("}\n")
        self.chr_code.main_code = "".join(parts)

    def build_file(self) -> None:
        """Generate header, default helpers and main function."""
        self.init()
        self.add_default_functions()
        self.generate_main_function(self.chrname)

    def add_predicate_call_to_space(self, call: str) -> None:
        self.build_call += f"space->{call};\n"

    def add_predicate_call_to_main(self, call: str) -> None:
        self.build_call += f"{call};\n"

    def add_initialisation_var(self, name: str, min_value: int, max_value: int) -> None:
        """Declare a decision variable at the current global id."""
        gid = self.global_id
        self.build_init += (
            f"Dom[{gid}] = interval({min_value},{max_value});\n"
            f'space->CspVarIntDec({gid}, string("{name}"), X[{gid}], Dom[{gid}]);\n'
        )

    def add_initialisation_tmp_var(
        self, name: str, min_value: int, max_value: int
    ) -> None:
        """Declare a temporary variable at the current global id."""
        gid = self.global_id
        self.build_init += (
            f"Dom[{gid}] = interval({min_value},{max_value});\n"
            f"space->CspTmpInt({gid}, X[{gid}], Dom[{gid}]);\n"
        )

    def add_initialisation_block(self, count: int) -> None:
        """Prepend the arrays holding ``count`` variables and domains."""
        block = (
            f"chr::Logical_var<int> X[{count}];\n"
            f"chr::Logical_var_mutable<interval> Dom[{count}];\n\n"
        )
        self.build_init = block + self.build_init

    def add_instantiations(self, instantiations: Mapping[int, int]) -> None:
        """Fix variables to values, in increasing id order."""
        for index, value in sorted(instantiations.items()):
            self.build_instantiation += f"set_eq(Dom[{index}], {value});\n"
        self.build_instantiation += "\n"