import asyncio
import random
from dataclasses import replace

from truco_bots import BotHeuristico, BotPrimeiraCarta
from truco_mesa import Mesa
from truco_partida import ACEITAR, CORRER, JOGAR, TRUCO, Acao, Jogador, quem_age

BOTS = [Jogador(i, f"Bot {i}") for i in range(4)]


def mesa_com_humano(provedor_1=None, **kwargs):
    provedores = {1: provedor_1 or BotPrimeiraCarta(), 2: BotPrimeiraCarta(), 3: BotPrimeiraCarta()}
    return Mesa(provedores=provedores, rng=random.Random(11), **kwargs)


def test_partida_so_de_bots_vai_ate_o_fim():
    placares = []

    async def ao_mudar(estado):
        placares.append(estado.placar)

    async def cenario():
        mesa = Mesa(
            jogadores=BOTS,
            provedores={i: BotHeuristico(random.Random(i)) for i in range(4)},
            rng=random.Random(42),
            ao_mudar=ao_mudar,
        )
        await mesa.iniciar()
        await mesa.esperar()
        return mesa

    mesa = asyncio.run(cenario())

    assert mesa.estado.fim_de_jogo
    assert max(mesa.estado.placar) >= 12
    assert mesa.aguardando_decisao is None
    # placar nunca anda pra trás
    for antes, depois in zip(placares, placares[1:]):
        assert depois[0] >= antes[0] and depois[1] >= antes[1]


def test_bots_param_na_vez_do_humano():
    async def cenario():
        mesa = mesa_com_humano()
        await mesa.iniciar()
        maos = [j.mao for j in mesa.estado.jogadores]
        await mesa.esperar()
        return mesa, maos

    mesa, maos = asyncio.run(cenario())

    assert quem_age(mesa.estado) == 0
    assert mesa.estado.mesa == ((1, maos[1][0]), (2, maos[2][0]), (3, maos[3][0]))


def test_provedor_com_erro_joga_a_primeira_carta():
    def quebrado(estado, assento):
        raise RuntimeError("sem conexão")

    async def cenario():
        mesa = mesa_com_humano(quebrado)
        await mesa.iniciar()
        primeira = mesa.estado.jogadores[1].mao[0]
        await mesa.esperar()
        return mesa, primeira

    mesa, primeira = asyncio.run(cenario())
    assert mesa.estado.mesa[0] == (1, primeira)


def test_provedor_com_indice_absurdo_joga_a_primeira_carta():
    async def cenario():
        mesa = mesa_com_humano(lambda estado, assento: Acao(JOGAR, 42))
        await mesa.iniciar()
        primeira = mesa.estado.jogadores[1].mao[0]
        await mesa.esperar()
        return mesa, primeira

    mesa, primeira = asyncio.run(cenario())
    assert mesa.estado.mesa[0] == (1, primeira)


def test_provedor_lento_estoura_o_tempo():
    async def lento(estado, assento):
        await asyncio.sleep(5)
        return Acao(JOGAR, 2)

    async def cenario():
        mesa = mesa_com_humano(lento, timeout_bot=0.01)
        await mesa.iniciar()
        primeira = mesa.estado.jogadores[1].mao[0]
        await mesa.esperar()
        return mesa, primeira

    mesa, primeira = asyncio.run(cenario())
    assert mesa.estado.mesa[0] == (1, primeira)


def test_decisao_descartada_quando_o_jogo_acaba():
    vistos = []

    async def cenario():
        mesa = mesa_com_humano()

        async def pensa_e_perde_a_vez(estado, assento):
            vistos.append(mesa.aguardando_decisao)
            mesa.estado = replace(mesa.estado, fim_de_jogo=True)
            return Acao(JOGAR, 0)

        mesa.provedores[1] = pensa_e_perde_a_vez
        await mesa.iniciar()
        await mesa.esperar()
        return mesa

    mesa = asyncio.run(cenario())
    assert vistos == [1]
    assert mesa.estado.mesa == ()
    assert len(mesa.estado.jogadores[1].mao) == 3


def test_comandos_do_humano():
    async def cenario():
        mesa = mesa_com_humano()
        await mesa.iniciar()
        await mesa.esperar()
        carta = mesa.estado.jogadores[0].mao[0]

        # transição em andamento: recusa
        async with mesa._trava:
            assert await mesa.jogar(0, carta) is False

        # assento de bot não aceita comando de fora
        assert await mesa.pedir_truco(1) is False
        # ninguém pediu truco
        assert await mesa.aceitar(0) is False
        assert mesa.estado.mensagem == "Ninguém pediu truco."

        assert await mesa.jogar(0, carta) is True
        assert carta not in mesa.estado.jogadores[0].mao
        mesa.cancelar()
        return mesa

    asyncio.run(cenario())


def test_humano_responde_truco_do_bot():
    async def trucador(estado, assento):
        if estado.aposta.valor == 1 and not estado.aposta.aguardando_resposta:
            return Acao(TRUCO)
        return Acao(JOGAR, 0)

    async def cenario():
        mesa = Mesa(
            provedores={1: BotPrimeiraCarta(), 2: BotPrimeiraCarta(), 3: trucador},
            rng=random.Random(3),
        )
        await mesa.iniciar()
        await mesa.esperar()
        assert mesa.estado.aposta.aguardando_resposta
        assert quem_age(mesa.estado) == 0

        assert await mesa.aceitar(0) is True
        assert mesa.estado.aposta.valor == 3
        await mesa.esperar()
        assert quem_age(mesa.estado) == 0
        assert len(mesa.estado.mesa) == 3
        mesa.cancelar()

    asyncio.run(cenario())


def test_correr_no_truco_encerra_a_partida_na_mesa():
    def trucador(estado, assento):
        if not estado.aposta.aguardando_resposta and estado.aposta.valor < 6:
            return Acao(TRUCO)
        return Acao(JOGAR, 0)

    def aceita_uma_vez(estado, assento):
        if estado.aposta.aguardando_resposta:
            return Acao(ACEITAR if estado.aposta.valor == 1 else CORRER)
        return Acao(JOGAR, 0)

    async def cenario():
        mesa = Mesa(
            jogadores=BOTS,
            provedores={0: BotPrimeiraCarta(), 1: trucador, 2: aceita_uma_vez, 3: BotPrimeiraCarta()},
            rng=random.Random(8),
        )
        await mesa.iniciar()
        # Time B já com 9 antes do bot começar
        mesa.estado = replace(mesa.estado, placar=(0, 9))
        await mesa.esperar()
        return mesa

    mesa = asyncio.run(cenario())

    assert mesa.estado.placar == (0, 12)
    assert mesa.estado.fim_de_jogo
    assert mesa.estado.dealer == 0
    assert all(len(j.mao) == 3 for j in mesa.estado.jogadores)


def test_erro_inesperado_na_mesa_aparece_no_log(capsys):
    async def quebrada():
        raise RuntimeError("estado corrompido")

    async def cenario():
        mesa = mesa_com_humano()
        mesa.rodar = quebrada
        mesa.agendar()
        await asyncio.sleep(0.01)
        return mesa

    mesa = asyncio.run(cenario())

    saida = capsys.readouterr()
    assert "[MESA] ERRO CRÍTICO na mesa: RuntimeError('estado corrompido')" in saida.out
    assert "estado corrompido" in saida.err
    assert mesa._tarefa.done()
