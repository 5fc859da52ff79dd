import random
from dataclasses import dataclass, replace

# Valores dos Naipes para desempate de Manilha
# Pesos: Paus (Zap) > Copas > Espadas > Ouros
NAIPES = {
    'Ouros': 1,
    'Espadas': 2,
    'Copas': 3,
    'Paus': 4
}

# Ordem de força padrão (do menor para o maior, sem manilha)
FORCA_PADRAO = ['4', '5', '6', '7', 'Q', 'J', 'K', 'A', '2', '3']

CARTAS_POR_JOGADOR = 3
NUM_JOGADORES = 4
PONTOS_PARA_VENCER = 12

# Resultado de rodada empatada (canga). Não é id de time.
EMPATE = -1

# Escada da aposta: truco, seis, nove, doze
SEQUENCIA_APOSTA = {1: 3, 3: 6, 6: 9, 9: 12}
VALOR_MAXIMO = 12


@dataclass(frozen=True)
class Carta:
    valor: str
    naipe: str

    @property
    def id(self):
        return f"{self.valor}-{self.naipe}"

    def __repr__(self):
        return f"{self.valor} de {self.naipe}"


def time_do_assento(assento):
    # Pares = Time 0, ímpares = Time 1
    return assento % 2


# ==============================================================================
# BARALHO E DISTRIBUIÇÃO
# ==============================================================================

def criar_baralho(rng=None):
    """Cria um baralho limpo (40 cartas) e embaralhado"""
    rng = rng or random.Random()
    baralho = [Carta(v, n) for v in FORCA_PADRAO for n in NAIPES]
    rng.shuffle(baralho)
    return baralho


def dar_cartas(baralho, num_jogadores=NUM_JOGADORES):
    """
    Distribui 3 cartas para cada jogador (uma por vez, em roda) e vira a
    carta seguinte. Consome uma cópia do baralho a partir do fim.
    Retorna (maos, vira, resto_do_baralho).
    """
    cartas_necessarias = (num_jogadores * CARTAS_POR_JOGADOR) + 1
    if len(baralho) < cartas_necessarias:
        raise ValueError(
            f"Baralho com {len(baralho)} cartas, precisa de {cartas_necessarias}"
        )

    resto = list(baralho)
    maos = [[] for _ in range(num_jogadores)]
    for _ in range(CARTAS_POR_JOGADOR):
        for mao in maos:
            mao.append(resto.pop())

    vira = resto.pop()
    return maos, vira, resto


def proxima_manilha(valor_vira):
    """Define qual é a carta forte com base no Vira (do 3 volta pro 4)"""
    idx_vira = FORCA_PADRAO.index(valor_vira)
    return FORCA_PADRAO[(idx_vira + 1) % len(FORCA_PADRAO)]


# ==============================================================================
# FORÇA DAS CARTAS E RODADAS
# ==============================================================================

def calcular_forca(carta, manilha):
    # Se a carta for a Manilha, ela ganha força extra (100 + peso do naipe)
    if carta.valor == manilha:
        return 100 + NAIPES[carta.naipe]
    return FORCA_PADRAO.index(carta.valor) + 1


def resolver_rodada(mesa, manilha):
    """
    Recebe as 4 jogadas (assento, carta) e devolve o time vencedor
    ou EMPATE se a maior carta aparecer mais de uma vez.
    """
    assert len(mesa) == NUM_JOGADORES, f"Rodada com {len(mesa)} cartas na mesa"

    forcas = [calcular_forca(c, manilha) for _, c in mesa]
    maior_forca = max(forcas)
    donos = [assento for (assento, _), f in zip(mesa, forcas) if f == maior_forca]

    # Empate vale mesmo entre parceiros
    if len(donos) > 1:
        return EMPATE
    return time_do_assento(donos[0])


def dono_melhor_carta(mesa, manilha):
    """Assento de quem jogou primeiro a carta mais forte. Ele torna a próxima."""
    assert len(mesa) == NUM_JOGADORES, f"Rodada com {len(mesa)} cartas na mesa"

    dono, melhor = mesa[0][0], calcular_forca(mesa[0][1], manilha)
    for assento, carta in mesa[1:]:
        f = calcular_forca(carta, manilha)
        if f > melhor:
            dono, melhor = assento, f
    return dono


def vencedor_da_mao(rodadas):
    """
    Regra: Melhor de 3.
    Retorna 0, 1 ou None se a mão ainda não acabou.
    """
    assert len(rodadas) <= 3, f"Mão com {len(rodadas)} rodadas"

    vitorias_t0 = rodadas.count(0)
    vitorias_t1 = rodadas.count(1)

    # 1. Vitória limpa: quem fizer 2 leva, mesmo sem jogar a 3ª
    if vitorias_t0 >= 2:
        return 0
    if vitorias_t1 >= 2:
        return 1

    if len(rodadas) < 3:
        return None

    # 2. Três rodadas jogadas: quem ganhou mais
    if vitorias_t0 != vitorias_t1:
        return 0 if vitorias_t0 > vitorias_t1 else 1

    # 3. Igualdade: a primeira rodada que não empatou decide
    for r in rodadas:
        if r != EMPATE:
            return r

    # 4. Três empates: fica com o Time 0
    return 0


# ==============================================================================
# APOSTA (TRUCO / SEIS / NOVE / DOZE)
# ==============================================================================

@dataclass(frozen=True)
class Aposta:
    valor: int = 1
    pedinte: int | None = None
    aguardando_resposta: bool = False

    @property
    def respondente(self):
        if not self.aguardando_resposta:
            return None
        return (self.pedinte + 1) % NUM_JOGADORES

    def proximo_valor(self):
        return SEQUENCIA_APOSTA.get(self.valor)

    def pode_pedir(self):
        # Trava de segurança
        if self.aguardando_resposta:
            return False, "Já existe um pedido de truco na mesa."
        if self.valor >= VALOR_MAXIMO:
            return False, f"A aposta já está no máximo ({VALOR_MAXIMO})!"
        return True, "Pode pedir"

    def pedir(self, assento):
        return replace(self, pedinte=assento, aguardando_resposta=True)

    def aceitar(self):
        # Pedido aceito: sobe um degrau e o jogo segue de onde parou
        return replace(self, valor=self.proximo_valor(), pedinte=None, aguardando_resposta=False)

    def correr(self):
        """Retorna (time_do_pedinte, pontos) com o valor de ANTES do aumento."""
        return time_do_assento(self.pedinte), self.valor
