from dataclasses import dataclass, field, replace
from typing import NamedTuple

from truco_core import (
    EMPATE, NUM_JOGADORES, PONTOS_PARA_VENCER, Aposta, Carta,
    criar_baralho, dar_cartas, dono_melhor_carta, proxima_manilha,
    resolver_rodada, time_do_assento, vencedor_da_mao,
)

NOMES_TIMES = ("Time A", "Time B")
NOMES_PEDIDO = {3: 'TRUCO', 6: 'SEIS', 9: 'NOVE', 12: 'DOZE'}

# Ações que o provedor de decisão pode devolver
JOGAR = 'jogar'
TRUCO = 'truco'
ACEITAR = 'aceitar'
CORRER = 'correr'
TIPOS_ACAO = (JOGAR, TRUCO, ACEITAR, CORRER)


class Acao(NamedTuple):
    tipo: str
    indice_carta: int | None = None
    mensagem: str | None = None


@dataclass(frozen=True)
class Jogador:
    id: int
    nome: str
    eh_bot: bool = True
    mao: tuple = ()

    @property
    def time(self):
        return time_do_assento(self.id)


JOGADORES_PADRAO = (
    Jogador(0, "Você", eh_bot=False),
    Jogador(1, "Robô 1"),
    Jogador(2, "Robô 2"),
    Jogador(3, "Robô 3"),
)


@dataclass(frozen=True)
class EstadoMao:
    """
    Foto completa da mão. Cada transição devolve um novo EstadoMao;
    'jogadas' só anda quando a transição foi aceita.
    """
    jogadores: tuple
    baralho: tuple
    vira: Carta
    manilha: str
    vez_atual: int
    dealer: int
    placar: tuple = (0, 0)
    mesa: tuple = ()
    ultima_rodada: tuple = ()
    rodadas: tuple = ()
    aposta: Aposta = field(default_factory=Aposta)
    vencedor_mao: int | None = None
    fim_de_mao: bool = False
    fim_de_jogo: bool = False
    mensagem: str = ""
    jogadas: int = 0

    def nome(self, assento):
        return self.jogadores[assento].nome


# ==============================================================================
# CICLO DA PARTIDA
# ==============================================================================

def iniciar_mao(placar, dealer, jogadores, baralho=None, rng=None, jogadas=0):
    """
    Começa uma mão nova com o placar anterior, o dealer da vez e a roda de
    jogadores. Aceita um baralho pronto (ordem externa) para testes.
    """
    if len(jogadores) != NUM_JOGADORES:
        raise ValueError(f"Mesa com {len(jogadores)} jogadores, precisa de {NUM_JOGADORES}")
    if max(placar) >= PONTOS_PARA_VENCER:
        raise ValueError(f"Partida já encerrada ({placar[0]} x {placar[1]})")

    if baralho is None:
        baralho = criar_baralho(rng)
    maos, vira, resto = dar_cartas(baralho, NUM_JOGADORES)

    roda = tuple(
        Jogador(i, j.nome, j.eh_bot, tuple(maos[i]))
        for i, j in enumerate(jogadores)
    )
    primeiro = (dealer + 1) % NUM_JOGADORES

    return EstadoMao(
        jogadores=roda,
        baralho=tuple(resto),
        vira=vira,
        manilha=proxima_manilha(vira.valor),
        vez_atual=primeiro,
        dealer=dealer,
        placar=tuple(placar),
        mensagem=f"Partida iniciada! É a vez de {roda[primeiro].nome}",
        jogadas=jogadas,
    )


def nova_partida(jogadores=None, dealer=0, baralho=None, rng=None):
    return iniciar_mao((0, 0), dealer, jogadores or JOGADORES_PADRAO, baralho, rng)


def proxima_mao(estado, baralho=None, rng=None):
    """Roda o dealer e distribui de novo, mantendo o placar."""
    if estado.fim_de_jogo:
        return _rejeitar(estado, "A partida já terminou.")
    if not estado.fim_de_mao:
        return _rejeitar(estado, "A mão ainda está em andamento.")

    return iniciar_mao(
        estado.placar,
        (estado.dealer + 1) % NUM_JOGADORES,
        estado.jogadores,
        baralho,
        rng,
        jogadas=estado.jogadas + 1,
    )


def quem_age(estado):
    """Assento que precisa decidir agora, ou None se a mão acabou."""
    if estado.fim_de_jogo or estado.fim_de_mao:
        return None
    if estado.aposta.aguardando_resposta:
        return estado.aposta.respondente
    return estado.vez_atual


# ==============================================================================
# TRANSIÇÕES
# ==============================================================================

def _rejeitar(estado, motivo):
    # Jogada ilegal não quebra nada: só avisa
    return replace(estado, mensagem=motivo)


def _mao_fechada(estado):
    if estado.fim_de_jogo:
        return "A partida já terminou."
    if estado.fim_de_mao:
        return "A mão já terminou."
    return None


def _encerrar_mao(estado, time_venc, pontos, mensagem):
    placar = list(estado.placar)
    placar[time_venc] += pontos
    fim_de_jogo = max(placar) >= PONTOS_PARA_VENCER

    if fim_de_jogo:
        mensagem += f" FIM DE JOGO! {NOMES_TIMES[time_venc]} venceu a partida!"

    return replace(
        estado,
        placar=tuple(placar),
        aposta=replace(estado.aposta, pedinte=None, aguardando_resposta=False),
        vencedor_mao=time_venc,
        fim_de_mao=True,
        fim_de_jogo=fim_de_jogo,
        mensagem=mensagem,
        jogadas=estado.jogadas + 1,
    )


def jogar_carta(estado, assento, carta):
    motivo = _mao_fechada(estado)
    if motivo:
        return _rejeitar(estado, motivo)
    if estado.aposta.aguardando_resposta:
        return _rejeitar(estado, "Aguardando resposta do truco.")
    if estado.vez_atual != assento:
        return _rejeitar(estado, f"Não é a vez de {estado.nome(assento)}.")

    jogador = estado.jogadores[assento]
    if carta not in jogador.mao:
        return _rejeitar(estado, f"{carta} não está na mão de {jogador.nome}.")

    mao = tuple(c for c in jogador.mao if c != carta)
    jogadores = tuple(
        replace(j, mao=mao) if j.id == assento else j for j in estado.jogadores
    )
    mesa = estado.mesa + ((assento, carta),)

    if len(mesa) < NUM_JOGADORES:
        prox = (assento + 1) % NUM_JOGADORES
        return replace(
            estado,
            jogadores=jogadores,
            mesa=mesa,
            vez_atual=prox,
            mensagem=f"Vez de {estado.nome(prox)}",
            jogadas=estado.jogadas + 1,
        )

    # --- Mesa cheia: fecha a rodada ---
    resultado = resolver_rodada(mesa, estado.manilha)
    rodadas = estado.rodadas + (resultado,)
    txt = "EMPATE (Canga)" if resultado == EMPATE else NOMES_TIMES[resultado]

    estado = replace(
        estado,
        jogadores=jogadores,
        mesa=(),
        ultima_rodada=mesa,
        rodadas=rodadas,
    )

    venc_mao = vencedor_da_mao(rodadas)
    if venc_mao is not None:
        pontos = estado.aposta.valor
        return _encerrar_mao(
            estado, venc_mao, pontos,
            f"{NOMES_TIMES[venc_mao]} venceu a mão! (+{pontos})",
        )

    # Quem jogou a maior carta torna, mesmo se a rodada empatou
    prox = dono_melhor_carta(mesa, estado.manilha)
    return replace(
        estado,
        vez_atual=prox,
        mensagem=f"Rodada: {txt}. Vez de {estado.nome(prox)}",
        jogadas=estado.jogadas + 1,
    )


def pedir_truco(estado, assento):
    motivo = _mao_fechada(estado)
    if motivo:
        return _rejeitar(estado, motivo)
    if estado.vez_atual != assento:
        return _rejeitar(estado, f"Só pode pedir na sua vez, {estado.nome(assento)}.")

    pode, msg = estado.aposta.pode_pedir()
    if not pode:
        return _rejeitar(estado, msg)

    pedido = NOMES_PEDIDO[estado.aposta.proximo_valor()]
    return replace(
        estado,
        aposta=estado.aposta.pedir(assento),
        mensagem=f"{estado.nome(assento)} pediu {pedido}!",
        jogadas=estado.jogadas + 1,
    )


def _checar_resposta(estado, assento):
    motivo = _mao_fechada(estado)
    if motivo:
        return motivo
    if not estado.aposta.aguardando_resposta:
        return "Ninguém pediu truco."
    if estado.aposta.respondente != assento:
        return f"Quem responde é {estado.nome(estado.aposta.respondente)}."
    return None


def aceitar_truco(estado, assento):
    motivo = _checar_resposta(estado, assento)
    if motivo:
        return _rejeitar(estado, motivo)

    aposta = estado.aposta.aceitar()
    return replace(
        estado,
        aposta=aposta,
        mensagem=f"ACEITOU! VALE {aposta.valor}. Vez de {estado.nome(estado.vez_atual)}",
        jogadas=estado.jogadas + 1,
    )


def correr(estado, assento):
    motivo = _checar_resposta(estado, assento)
    if motivo:
        return _rejeitar(estado, motivo)

    time_venc, pontos = estado.aposta.correr()
    return _encerrar_mao(
        estado, time_venc, pontos,
        f"{estado.nome(assento)} correu! {NOMES_TIMES[time_venc]} ganha {pontos}.",
    )


# ==============================================================================
# AÇÕES DOS PROVEDORES (BOT, MODELO REMOTO, HUMANO)
# ==============================================================================

def acao_padrao(estado, assento):
    # Responder truco sem decisão válida = correr; no resto, primeira carta
    if estado.aposta.aguardando_resposta and estado.aposta.respondente == assento:
        return Acao(CORRER)
    return Acao(JOGAR, 0)


def _indice_valido(indice, tamanho_mao):
    if isinstance(indice, bool):
        return None
    if isinstance(indice, float) and indice.is_integer():
        indice = int(indice)
    if isinstance(indice, int) and 0 <= indice < tamanho_mao:
        return indice
    return None


def validar_acao(estado, assento, acao):
    """Garante que a resposta do provedor é jogável; senão troca pela padrão."""
    if not isinstance(acao, Acao) or acao.tipo not in TIPOS_ACAO:
        return acao_padrao(estado, assento)

    aposta = estado.aposta
    if aposta.aguardando_resposta:
        if assento == aposta.respondente and acao.tipo in (ACEITAR, CORRER):
            return acao
        return acao_padrao(estado, assento)

    if acao.tipo == JOGAR:
        indice = _indice_valido(acao.indice_carta, len(estado.jogadores[assento].mao))
        return acao._replace(indice_carta=indice if indice is not None else 0)

    if acao.tipo == TRUCO and estado.vez_atual == assento and aposta.pode_pedir()[0]:
        return acao

    return acao_padrao(estado, assento)


def aplicar_acao(estado, assento, acao):
    acao = validar_acao(estado, assento, acao)

    if acao.tipo == TRUCO:
        return pedir_truco(estado, assento)
    if acao.tipo == ACEITAR:
        return aceitar_truco(estado, assento)
    if acao.tipo == CORRER:
        return correr(estado, assento)

    mao = estado.jogadores[assento].mao
    if not mao:
        return _rejeitar(estado, f"{estado.nome(assento)} não tem cartas.")
    return jogar_carta(estado, assento, mao[acao.indice_carta])


# ==============================================================================
# VISÃO PARA A APRESENTAÇÃO
# ==============================================================================

def carta_json(carta):
    return {'valor': carta.valor, 'naipe': carta.naipe}


def visao(estado, assento=None):
    """Foto somente-leitura do estado, escondendo as mãos dos outros."""
    aposta = estado.aposta
    dados = {
        'jogadores': [
            {'id': j.id, 'nome': j.nome, 'eh_bot': j.eh_bot,
             'time': j.time, 'qtd_cartas': len(j.mao)}
            for j in estado.jogadores
        ],
        'vira': carta_json(estado.vira),
        'manilha': estado.manilha,
        'vez_atual': quem_age(estado),
        'mesa': [dict(carta_json(c), dono_idx=a) for a, c in estado.mesa],
        'ultima_rodada': [dict(carta_json(c), dono_idx=a) for a, c in estado.ultima_rodada],
        'rodadas_hist': list(estado.rodadas),
        'placar': list(estado.placar),
        'valor': aposta.valor,
        'pedinte': aposta.pedinte,
        'aguardando_truco': aposta.aguardando_resposta,
        'respondente': aposta.respondente,
        'dealer': estado.dealer,
        'fim_de_mao': estado.fim_de_mao,
        'vencedor_mao': estado.vencedor_mao,
        'fim_de_jogo': estado.fim_de_jogo,
        'mensagem': estado.mensagem,
    }
    if assento is not None:
        dados['seu_indice'] = assento
        dados['minhas_cartas'] = [carta_json(c) for c in estado.jogadores[assento].mao]
    return dados
